"""Subsystem interface (SIF) registers shared between the EE and the IOP."""

from __future__ import annotations

import logging
from enum import IntEnum

_log = logging.getLogger(__name__)


class SifError(Exception):
    """Raised on an access to an address that holds no SIF register."""


class SifRegister(IntEnum):
    """SIF registers, by their offset in the low byte of the address."""

    MSCOM = 0x00
    SMCOM = 0x10
    MSFLG = 0x20
    SMFLG = 0x30
    CTRL = 0x40
    BD6 = 0x60

    @property
    def label(self) -> str:
        return f"SIF_{self.name}"


def _decode(addr: int) -> SifRegister | None:
    try:
        return SifRegister(addr & 0xFF)
    except ValueError:
        return None


class Sif:
    """The SIF communication and flag registers."""

    def __init__(self) -> None:
        self.registers: dict[SifRegister, int] = dict.fromkeys(SifRegister, 0)

    def read32(self, addr: int) -> int:
        """Read a SIF register; raises SifError for an unknown address."""
        reg = _decode(addr)
        if reg is None:
            _log.error("Invalid SIF register read at address 0x%08X", addr)
            raise SifError(f"Invalid SIF register read at address 0x{addr:08X}")
        if reg is SifRegister.SMFLG:
            # Without an IOP, report that the sub CPU has finished initialising.
            self.registers[reg] |= 0x10000
        value = self.registers[reg]
        _log.info("SIF register read from %s: 0x%08X", reg.label, value)
        return value

    def write32(self, addr: int, value: int) -> None:
        """Write a SIF register; writes to unknown addresses are logged and dropped."""
        value &= 0xFFFF_FFFF
        reg = _decode(addr)
        if reg is None:
            _log.error(
                "Invalid SIF register write at address 0x%08X, value=0x%08X",
                addr,
                value,
            )
            return
        if reg is SifRegister.CTRL:
            # Bits 28-31 and bit 0 always read back as set.
            value |= 0xF000_0000 | 0x1
        self.registers[reg] = value
        _log.info("SIF register write to %s: 0x%08X", reg.label, value)