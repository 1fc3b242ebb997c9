"""Image processing unit (IPU) I/O registers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum

_log = logging.getLogger(__name__)

IPU_BASE = 0x1000_2000

_ECD_BIT = 1 << 14
_SCD_BIT = 1 << 15
_RESET_BIT = 1 << 30
_BUSY_BIT = 1 << 31
# IDP (16-17), AS (20), IVF (21), QST (22), MP1 (23)
_CTRL_WRITABLE = 0x00F3_0000


class IpuRegister(IntEnum):
    """IPU registers, by their offset from IPU_BASE."""

    CMD = 0x00
    CTRL = 0x10
    BP = 0x20
    TOP = 0x30


def _decode(addr: int) -> IpuRegister | None:
    try:
        return IpuRegister(addr - IPU_BASE)
    except ValueError:
        return None


@dataclass
class Ipu:
    """The IPU command, control, bitstream position and TOP registers."""

    cmd: int = 0
    ctrl: int = 0
    bp: int = 0
    top: int = 0
    command_sent: bool = False
    bitstream_first: int = 0
    busy: bool = False
    bitstream_buffer: int = 0

    def _reset(self) -> None:
        self.cmd = 0
        self.ctrl = 0
        self.bp = 0
        self.top = 0
        self.command_sent = False
        self.bitstream_first = 0
        self.busy = False
        self.bitstream_buffer = 0

    def write32(self, addr: int, value: int) -> None:
        """Write an IPU register; writes to read-only or unknown ones are dropped."""
        value &= 0xFFFF_FFFF
        reg = _decode(addr)
        if reg is IpuRegister.CMD:
            self.cmd = value
            self.command_sent = True
            self.ctrl &= ~(_ECD_BIT | _SCD_BIT)
            self.busy = True
            _log.debug(
                "IPU_CMD write: code=0x%X, option=0x%07X, busy=true",
                (value >> 28) & 0xF,
                value & 0x0FFF_FFFF,
            )
            # Commands are not decoded; they complete at once.
            self.busy = False
        elif reg is IpuRegister.CTRL:
            if value & _RESET_BIT:
                self._reset()
                _log.debug("IPU reset triggered")
            else:
                self.ctrl = (self.ctrl & ~_CTRL_WRITABLE) | (value & _CTRL_WRITABLE)
                _log.debug(
                    "IPU_CTRL write: IDP=%d, AS=%d, IVF=%d, QST=%d, MP1=%d",
                    (value >> 16) & 0x3,
                    (value >> 20) & 0x1,
                    (value >> 21) & 0x1,
                    (value >> 22) & 0x1,
                    (value >> 23) & 0x1,
                )
        elif reg in (IpuRegister.BP, IpuRegister.TOP):
            _log.debug(
                "Attempt to write read-only IPU register @ offset %#X: value=0x%08X",
                int(reg),
                value,
            )
        else:
            _log.error("Invalid IPU write offset: %#X", addr - IPU_BASE)

    def read32(self, addr: int) -> int:
        """Read an IPU register; unknown offsets read as zero."""
        reg = _decode(addr)
        busy = _BUSY_BIT if self.busy else 0
        if reg is IpuRegister.CMD:
            if not self.command_sent:
                _log.debug(
                    "IPU_CMD read (no command sent): bitstream_first=0x%08X",
                    self.bitstream_first,
                )
                return self.bitstream_first
            result = self.cmd | busy
            _log.debug("IPU_CMD read: result=0x%08X, busy=%s", result, self.busy)
            return result
        if reg is IpuRegister.CTRL:
            return self.ctrl | busy
        if reg is IpuRegister.BP:
            _log.debug(
                "IPU_BP read: BP=%d, IFC=%d, FP=%d",
                self.bp & 0x7F,
                (self.bp >> 8) & 0xF,
                (self.bp >> 16) & 0x3,
            )
            return self.bp
        if reg is IpuRegister.TOP:
            _log.debug(
                "IPU_TOP read: bitstream=0x%08X, busy=%s", self.top, self.busy
            )
            return self.top | busy
        _log.error("Invalid IPU read offset: %#X", addr - IPU_BASE)
        return 0

    def update_ctrl(
        self, ifc, ofc, cbp, ecd, scd, idp, as_, ivf, qst, mp1, picture_type
    ) -> None:
        """Rebuild IPU_CTRL from its status fields."""
        self.ctrl = (
            (ifc & 0xF)
            | ((ofc & 0xF) << 4)
            | ((cbp & 0x3F) << 8)
            | (int(bool(ecd)) << 14)
            | (int(bool(scd)) << 15)
            | ((idp & 0x3) << 16)
            | (int(bool(as_)) << 20)
            | (int(bool(ivf)) << 21)
            | (int(bool(qst)) << 22)
            | (int(bool(mp1)) << 23)
            | ((picture_type & 0x7) << 24)
        )
        _log.debug("IPU_CTRL updated: 0x%08X", self.ctrl)

    def update_bp(self, bp: int, ifc: int, fp: int) -> None:
        """Set the bitstream position and FIFO status fields of IPU_BP."""
        self.bp = (bp & 0x7F) | ((ifc & 0xF) << 8) | ((fp & 0x3) << 16)
        _log.debug("IPU_BP updated: BP=%d, IFC=%d, FP=%d", bp, ifc, fp)

    def update_top(self, bitstream: int, busy: bool) -> None:
        """Set the next 32 bits of the bitstream and the busy flag."""
        self.top = bitstream & 0xFFFF_FFFF
        self.busy = bool(busy)
        _log.debug("IPU_TOP updated: bitstream=0x%08X, busy=%s", self.top, self.busy)

    def update_bitstream_first(self, bitstream: int) -> None:
        """Set the first 32 bits of the bitstream, read from IPU_CMD before any command."""
        self.bitstream_first = bitstream & 0xFFFF_FFFF
        _log.debug(
            "IPU bitstream first 32 bits updated: 0x%08X", self.bitstream_first
        )

    def receive_dma_data(self, data: int) -> None:
        """Take a word of bitstream arriving by DMA and refresh the status registers."""
        data &= 0xFFFF_FFFF
        if not self.command_sent:
            self.update_bitstream_first(data)
        self.update_top(data, bin(data).count("1") < 32)
        ifc = 1
        ctrl = self.ctrl
        self.update_ctrl(
            ifc,
            (ctrl >> 4) & 0xF,
            (ctrl >> 8) & 0x3F,
            (ctrl >> 14) & 0x1 != 0,
            (ctrl >> 15) & 0x1 != 0,
            (ctrl >> 16) & 0x3,
            (ctrl >> 20) & 0x1 != 0,
            (ctrl >> 21) & 0x1 != 0,
            (ctrl >> 22) & 0x1 != 0,
            (ctrl >> 23) & 0x1 != 0,
            (ctrl >> 24) & 0x7,
        )
        self.update_bp(self.bp & 0x7F, ifc, (self.bp >> 16) & 0x3)