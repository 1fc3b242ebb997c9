import pytest

from ps2hw.timer import Timers, TimerError

T0 = 0x10000000
T1 = 0x10000800
T2 = 0x10001000
T3 = 0x10001800


@pytest.mark.parametrize("base", [T0, T1, T2, T3])
def test_count_and_comp_round_trip(base):
    timers = Timers()
    timers.write32(base + 0x00, 0x1234)
    timers.write32(base + 0x20, 0x4321)
    assert timers.read32(base + 0x00) == 0x1234
    assert timers.read32(base + 0x20) == 0x4321


def test_count_is_sixteen_bits():
    timers = Timers()
    timers.write32(T0, 0xABCD1234)
    assert timers.read32(T0) == 0xABCD1234 & 0xFFFF


def test_timers_are_independent():
    timers = Timers()
    timers.write32(T1, 0x55)
    assert timers.read32(T0) == 0
    assert timers.read32(T1) == 0x55


def test_kseg_address_is_masked():
    timers = Timers()
    timers.write32(0xB0000800, 0x77)
    assert timers.read32(T1) == 0x77


@pytest.mark.parametrize("base", [T0, T1])
def test_hold_round_trip(base):
    timers = Timers()
    timers.write32(base + 0x30, 0x1FFFF)
    assert timers.read32(base + 0x30) == 0x1FFFF & 0xFFFF


@pytest.mark.parametrize("base", [T2, T3])
def test_hold_missing_on_t2_t3(base):
    timers = Timers()
    with pytest.raises(TimerError):
        timers.read32(base + 0x30)
    with pytest.raises(TimerError):
        timers.write32(base + 0x30, 1)


def test_mode_masked_to_twelve_bits():
    timers = Timers()
    timers.write32(T0 + 0x10, 0xFFFFFFFF)
    value = timers.read32(T0 + 0x10)
    assert value < 0x1000
    assert value & 0x3FF == 0x3FF


def test_mode_flags_cannot_be_set_by_writing():
    timers = Timers()
    timers.write32(T0 + 0x10, 0xC00)
    assert timers.read32(T0 + 0x10) & 0xC00 == 0


def test_invalid_timer_index_raises():
    timers = Timers()
    with pytest.raises(TimerError):
        timers.read32(0x10002000)
    with pytest.raises(TimerError):
        timers.write32(0x10002000, 0)


def test_address_below_block_raises():
    timers = Timers()
    with pytest.raises(TimerError):
        timers.read32(0x0FFFFFFC)


def test_unknown_offset_raises():
    timers = Timers()
    with pytest.raises(TimerError):
        timers.read32(T0 + 0x40)
    with pytest.raises(TimerError):
        timers.write32(T0 + 0x40, 0)