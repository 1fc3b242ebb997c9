from dataclasses import dataclass, field
from unittest.mock import patch

import pytest

from ps2hw.gs import Gs
from ps2hw.sched import EE_CYCLES_PER_FRAME, EE_FREQUENCY, Event, Scheduler


@dataclass
class Machine:
    scheduler: Scheduler
    gs: Gs = field(default_factory=Gs)


class RecordingBackend:
    def __init__(self, limit=None):
        self.runs = []
        self.limit = limit

    def run_for_cycles(self, cycles):
        if self.limit is not None and len(self.runs) >= self.limit:
            raise KeyboardInterrupt
        self.runs.append(cycles)


def quiet_scheduler():
    sched = Scheduler()
    sched.disable_throttle = True
    return sched


def run_sleep_check(sched, now):
    slept = []
    with patch("time.monotonic", return_value=now), patch(
        "time.sleep", side_effect=slept.append
    ):
        sched.sleep_if_ahead()
    return slept


def test_empty_timeslice_is_one_frame():
    timeslice = Scheduler().cycles_for_next_timeslice()
    assert timeslice == EE_CYCLES_PER_FRAME
    assert timeslice == EE_FREQUENCY // 60


def test_timeslice_stops_at_next_event():
    sched = Scheduler()
    sched.add_event(1000, lambda m: None)
    sched.add_event(500, lambda m: None)
    assert sched.cycles_for_next_timeslice() == 500
    sched.add_event(EE_CYCLES_PER_FRAME * 2, lambda m: None)
    assert sched.cycles_for_next_timeslice() == 500


def test_overdue_event_gives_zero_timeslice():
    sched = Scheduler()
    sched.add_event(10, lambda m: None)
    sched.advance_cycles(20)
    assert sched.cycles_for_next_timeslice() == 0


def test_drain_returns_due_in_cycle_order():
    sched = Scheduler()
    order = []
    sched.add_event(30, lambda m: order.append("c"))
    sched.add_event(10, lambda m: order.append("a"))
    sched.add_event(20, lambda m: order.append("b"))
    sched.add_event(100, lambda m: order.append("late"))
    sched.advance_cycles(30)
    for callback in sched.drain_due_events():
        callback(None)
    assert order == ["a", "b", "c"]
    assert [e.cycle for e in sched.events] == [100]


def test_equal_cycles_run_in_insertion_order():
    sched = Scheduler()
    order = []
    for name in "xyz":
        sched.add_event(5, lambda m, n=name: order.append(n))
    sched.advance_cycles(5)
    for callback in sched.drain_due_events():
        callback(None)
    assert order == ["x", "y", "z"]


def test_events_compare_by_cycle():
    assert Event(1, 9, print) < Event(2, 0, print)


def test_add_event_is_relative_to_current_cycle():
    sched = Scheduler()
    sched.advance_cycles(100)
    sched.add_event(50, lambda m: None)
    assert sched.events[0].cycle == 150


def test_run_timeslice_runs_backend_and_fires_event():
    sched = quiet_scheduler()
    machine = Machine(sched)
    fired = []
    sched.add_event(1234, lambda m: fired.append(m))
    backend = RecordingBackend()
    sched.run_timeslice(backend, machine)
    assert backend.runs == [1234]
    assert fired == [machine]
    assert sched.current_cycle == 1234
    assert sched.real_time_start is not None


def test_initialize_events_drives_vsync():
    sched = quiet_scheduler()
    machine = Machine(sched)
    sched.initialize_events()
    backend = RecordingBackend()
    sched.run_timeslice(backend, machine)
    assert backend.runs == [4489019]
    assert machine.gs.gs_csr & 8 == 0
    sched.run_timeslice(backend, machine)
    assert backend.runs == [4489019, 431096]
    assert machine.gs.gs_csr & 8 == 8
    assert sched.vsync_count == 1 or sched.internal_fps > 0


def test_draw_batch_draws_buffered_primitives():
    sched = quiet_scheduler()
    machine = Machine(sched)
    gs = machine.gs
    gs.write_internal_reg(0x4C, 1 << 16)
    gs.write_internal_reg(0x40, (10 << 16) | (10 << 48))
    gs.write_internal_reg(0x00, 0)
    gs.write_internal_reg(0x01, 0x11223344)
    gs.write_internal_reg(0x05, (2 * 16) | ((3 * 16) << 16))
    assert len(gs.buffered_primitives) == 1
    sched.initialize_events()
    sched.run_timeslice(RecordingBackend(), machine)
    assert gs.buffered_primitives == []
    addr = (3 * 64 + 2) * 4
    assert bytes(gs.vram[addr : addr + 4]) == bytes([0x11, 0x44, 0x33, 0x22])


def test_main_loop_runs_until_backend_stops():
    sched = quiet_scheduler()
    machine = Machine(sched)
    sched.initialize_events()
    backend = RecordingBackend(limit=3)
    with pytest.raises(KeyboardInterrupt):
        sched.run_main_loop(backend, machine)
    assert len(backend.runs) == 3
    assert sched.current_cycle == sum(backend.runs)


def test_sleep_if_ahead_sleeps_until_emulated_time():
    sched = Scheduler()
    sched.real_time_start = 100.0
    sched.advance_cycles(EE_FREQUENCY)
    slept = run_sleep_check(sched, 100.0)
    assert slept == [pytest.approx(1.0)]
    assert sched.current_cycle == EE_FREQUENCY


def test_sleep_if_ahead_respects_disable_throttle():
    sched = Scheduler()
    sched.real_time_start = 100.0
    sched.disable_throttle = True
    sched.advance_cycles(EE_FREQUENCY)
    assert run_sleep_check(sched, 100.0) == []
    sched.disable_throttle = False
    assert run_sleep_check(sched, 100.0) == [pytest.approx(1.0)]


def test_sleep_if_behind_does_not_sleep():
    sched = Scheduler()
    sched.real_time_start = 100.0
    sched.advance_cycles(EE_FREQUENCY)
    assert run_sleep_check(sched, 200.0) == []
    assert run_sleep_check(sched, 100.5) == [pytest.approx(0.5)]