"""The four EE timers and their COUNT, MODE, COMP and HOLD registers."""

from __future__ import annotations

import logging
from dataclasses import dataclass

_log = logging.getLogger(__name__)

TIMER_BASE = 0x1000_0000
TIMER_COUNT = 4

_COUNT = 0x00
_MODE = 0x10
_COMP = 0x20
_HOLD = 0x30

_FLAG_BITS = 0xC00


class TimerError(Exception):
    """Raised on an access to a timer address that does not exist."""


@dataclass
class _Timer:
    index: int
    count: int = 0
    mode: int = 0
    comp: int = 0
    hold: int | None = None

    def read32(self, offset: int) -> int:
        if offset == _COUNT:
            return self.count
        if offset == _MODE:
            return self.mode
        if offset == _COMP:
            return self.comp
        if offset == _HOLD:
            if self.hold is None:
                raise TimerError(
                    "Read from TN_HOLD on timer without HOLD register "
                    f"at offset 0x{offset:08X}"
                )
            return self.hold
        raise TimerError(f"Unknown timer read32 at offset 0x{offset:08X}")

    def write32(self, offset: int, value: int) -> None:
        if offset == _COUNT:
            self.count = value & 0xFFFF
            _log.debug("T%d COUNT write: 0x%04X", self.index, self.count)
        elif offset == _MODE:
            self._write_mode(value)
        elif offset == _COMP:
            self.comp = value & 0xFFFF
            _log.debug("T%d COMP write: 0x%04X", self.index, self.comp)
        elif offset == _HOLD:
            if self.hold is None:
                raise TimerError(
                    "Write to TN_HOLD on timer without HOLD register at offset "
                    f"0x{offset:08X}, value=0x{value:08X}"
                )
            self.hold = value & 0xFFFF
            _log.debug("T%d HOLD write: 0x%04X", self.index, self.hold)
        else:
            raise TimerError(
                f"Unknown timer write32 at offset 0x{offset:08X}, value=0x{value:08X}"
            )

    def _write_mode(self, value: int) -> None:
        prev = self.mode
        # Interrupt flags survive only where the write keeps them at 1.
        new_mode = (value & ~_FLAG_BITS) | (prev & value & _FLAG_BITS)
        self.mode = new_mode & 0xFFF
        _log.debug(
            "T%d MODE write: 0x%08X, new MODE: 0x%08X", self.index, value, self.mode
        )
        rising = ~prev & self.mode & _FLAG_BITS
        if rising:
            _log.debug("T%d interrupt triggered (flags 0x%03X)", self.index, rising)


def _locate(addr: int) -> tuple[int, int]:
    addr &= 0x1FFF_FFFF
    if addr < TIMER_BASE:
        raise TimerError(f"Address 0x{addr:08X} lies below the timer block")
    index = (addr - TIMER_BASE) >> 11
    if index >= TIMER_COUNT:
        raise TimerError(f"Invalid timer index {index} at addr 0x{addr:08X}")
    return index, addr & 0x7FF


class Timers:
    """Timers T0 to T3; only T0 and T1 have a HOLD register."""

    def __init__(self) -> None:
        self.timers = [
            _Timer(index, hold=0 if index < 2 else None) for index in range(TIMER_COUNT)
        ]

    def read32(self, addr: int) -> int:
        """Read a timer register."""
        index, offset = _locate(addr)
        return self.timers[index].read32(offset)

    def write32(self, addr: int, value: int) -> None:
        """Write a timer register."""
        index, offset = _locate(addr)
        self.timers[index].write32(offset, value & 0xFFFF_FFFF)