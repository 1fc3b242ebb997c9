"""Vector unit register file and local memories."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class VectorUnit:
    """A vector unit with the given instruction and data memory sizes."""

    instr_size: int
    data_size: int
    vf: list[int] = field(init=False)
    vi: list[int] = field(init=False)
    acc: int = field(init=False)
    q: int = field(init=False)
    p: int = field(init=False)
    mac_flags: int = field(init=False)
    clip_flags: int = field(init=False)
    status_flags: int = field(init=False)
    instr_mem: bytearray = field(init=False, repr=False)
    data_mem: bytearray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        """Clear both memories and every register."""
        self.instr_mem = bytearray(self.instr_size)
        self.data_mem = bytearray(self.data_size)
        self.vf = [0] * 32
        self.vi = [0] * 16
        # ACC.x = 0, ACC.w = 1.0
        self.acc = 1
        self.q = 0
        self.p = 0
        self.mac_flags = 0
        self.clip_flags = 0
        self.status_flags = 0