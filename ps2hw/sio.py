"""EE serial I/O port, used by the BIOS for debug text output."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum

_log = logging.getLogger(__name__)


class SioRegister(IntEnum):
    """SIO register addresses."""

    LCR = 0x1000F100
    LSR = 0x1000F110
    IER = 0x1000F120
    ISR = 0x1000F130
    FCR = 0x1000F140
    BGR = 0x1000F150
    TXFIFO = 0x1000F180
    RXFIFO = 0x1000F1C0

    @property
    def field_name(self) -> str:
        return self.name.lower()


@dataclass
class SioRegisters:
    """Raw values of the SIO registers."""

    lcr: int = 0
    lsr: int = 0
    ier: int = 0
    isr: int = 0
    fcr: int = 0
    bgr: int = 0
    txfifo: int = 0
    rxfifo: int = 0


def _decode(address: int) -> SioRegister | None:
    try:
        return SioRegister(address)
    except ValueError:
        return None


@dataclass
class Sio:
    """The serial port; bytes written to TXFIFO are collected into lines."""

    registers: SioRegisters = field(default_factory=SioRegisters)
    tx_buffer: str = ""
    lines: list[str] = field(default_factory=list)

    def _store(self, address: int, value: int) -> SioRegister | None:
        reg = _decode(address)
        if reg is None:
            _log.error(
                "Unknown SIO write address: 0x%08X, value: 0x%08X", address, value
            )
            return None
        _log.debug("%s Write: 0x%08X", reg.name, value)
        setattr(self.registers, reg.field_name, value)
        return reg

    def write8(self, address: int, value: int) -> None:
        """Write a byte; a byte written to TXFIFO is printed as a character."""
        if value > 0xFF:
            _log.error("Value 0x%08X too large for u8, truncating", value)
        value &= 0xFF
        if self._store(address, value) is SioRegister.TXFIFO:
            char = chr(value)
            if char == "\n":
                _log.debug("%s", self.tx_buffer)
                self.lines.append(self.tx_buffer)
                self.tx_buffer = ""
            else:
                self.tx_buffer += char

    def write32(self, address: int, value: int) -> None:
        """Write a word; a word written to TXFIFO is stored but not printed."""
        value &= 0xFFFF_FFFF
        if self._store(address, value) is SioRegister.TXFIFO:
            _log.error("Invalid type for TXFIFO write: expected u8, got u32")

    def _load(self, address: int) -> int:
        reg = _decode(address)
        if reg is None:
            _log.error("Unknown SIO read address: 0x%08X", address)
            return 0
        value = getattr(self.registers, reg.field_name)
        _log.debug("%s Read: 0x%08X", reg.name, value)
        return value

    def read8(self, address: int) -> int:
        """Read a register as a byte, truncating wider values."""
        value = self._load(address)
        if value > 0xFF:
            _log.error("Value 0x%08X too large for u8, truncating", value)
        return value & 0xFF

    def read32(self, address: int) -> int:
        """Read a register as a word; unknown addresses read as zero."""
        return self._load(address)