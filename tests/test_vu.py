from ps2hw.vu import VectorUnit


def test_new_unit_has_requested_memory_sizes():
    vu = VectorUnit(4096, 16384)
    assert len(vu.instr_mem) == 4096
    assert len(vu.data_mem) == 16384


def test_new_unit_registers_are_cleared():
    vu = VectorUnit(16, 16)
    assert vu.vf == [0] * 32
    assert vu.vi == [0] * 16
    assert vu.acc == 1
    assert (vu.q, vu.p) == (0, 0)
    assert (vu.mac_flags, vu.clip_flags, vu.status_flags) == (0, 0, 0)


def test_reset_clears_state():
    vu = VectorUnit(8, 8)
    vu.instr_mem[0] = 0xFF
    vu.data_mem[7] = 0xAA
    vu.vf[3] = 123
    vu.vi[5] = 9
    vu.acc = 42
    vu.q = vu.p = 1
    vu.mac_flags = vu.clip_flags = vu.status_flags = 7
    vu.reset()
    assert vu == VectorUnit(8, 8)
    assert bytes(vu.instr_mem) == bytes(8)
    assert bytes(vu.data_mem) == bytes(8)


def test_reset_keeps_memory_sizes():
    vu = VectorUnit(32, 64)
    vu.reset()
    assert (len(vu.instr_mem), len(vu.data_mem)) == (32, 64)