"""Graphics interface (GIF): I/O registers and GIFtag processing for PATH3 DMA."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from .gs import Gs

_log = logging.getLogger(__name__)

GIF_BASE = 0x1000_3000

_MASK32 = 0xFFFF_FFFF
_MASK64 = 0xFFFF_FFFF_FFFF_FFFF
_Q_ONE = 0x3F80_0000  # 1.0f


class GifError(Exception):
    """Raised on a GIFtag whose data format is not supported."""


class GifRegister(IntEnum):
    """GIF I/O registers, by their offset from GIF_BASE."""

    CTRL = 0x00
    MODE = 0x10
    STAT = 0x20
    TAG0 = 0x40
    TAG1 = 0x50
    TAG2 = 0x60
    TAG3 = 0x70
    CNT = 0x80
    P3CNT = 0x90
    P3TAG = 0xA0


_READ_ONLY = frozenset(
    {
        GifRegister.STAT,
        GifRegister.TAG0,
        GifRegister.TAG1,
        GifRegister.TAG2,
        GifRegister.TAG3,
        GifRegister.CNT,
        GifRegister.P3CNT,
        GifRegister.P3TAG,
    }
)


class GifState(Enum):
    """What the next quadword delivered by DMA is taken to be."""

    IDLE = "idle"
    PROCESSING_PACKED = "packed"
    PROCESSING_IMAGE = "image"


def _decode(addr: int) -> GifRegister | None:
    try:
        return GifRegister(addr - GIF_BASE)
    except ValueError:
        return None


@dataclass
class Gif:
    """The GIF register block and the state of the GIFtag being processed."""

    ctrl: int = 0
    mode: int = 0
    tag0: int = 0
    tag1: int = 0
    tag2: int = 0
    tag3: int = 0
    cnt: int = 0
    p3cnt: int = 0
    p3tag: int = 0
    state: GifState = GifState.IDLE
    current_gif_addr: int = 0
    q_bits: int = 0
    current_gif_tag: int = 0
    nloop: int = 0
    current_nloop: int = 0
    nregs: int = 0
    regs: int = 0
    regs_left: int = 0

    def is_path3_masked(self) -> bool:
        """Whether MODE masks PATH3 transfers."""
        return bool(self.mode & 0x1)

    @property
    def _eop(self) -> bool:
        return bool((self.current_gif_tag >> 15) & 0x1)

    def _finish_tag(self) -> None:
        if self._eop:
            self.ctrl |= 0x1
        self.state = GifState.IDLE

    def write_dmac_data(
        self, gs: Gs, read128: Callable[[int], int], data: int, madr: int
    ) -> None:
        """Process one quadword sent to the GIF by the DMA controller.

        In the idle state the quadword is a GIFtag, found at ``madr``. In
        PACKED mode the data is fetched with ``read128`` from the address
        following the previous one; in IMAGE mode ``data`` itself is written.
        """
        if self.state is GifState.IDLE:
            self._start_tag(gs, data, madr)
        elif self.state is GifState.PROCESSING_PACKED:
            self._packed(gs, read128)
        else:
            self._image(gs, data)

    def _start_tag(self, gs: Gs, data: int, madr: int) -> None:
        self.current_gif_addr = madr & _MASK32
        self.q_bits = _Q_ONE

        low = data & _MASK64
        self.nloop = low & 0x7FFF
        enable_prim = bool((low >> 46) & 0x1)
        prim = (low >> 47) & 0x7FF
        data_format = (low >> 58) & 0x3
        nregs = (low >> 60) & 0xF or 16

        self.current_gif_tag = data
        self.nregs = nregs
        self.regs = (data >> 64) & _MASK64
        self.regs_left = nregs
        self.current_nloop = self.nloop

        if self.nloop == 0:
            _log.debug("GIF: NLOOP == 0 -> tag ignored (only EOP may matter).")
            return

        if enable_prim:
            gs.write_internal_reg(0, prim)

        if data_format == 0:
            self.state = GifState.PROCESSING_PACKED
            _log.debug("GIF: switching to ProcessingPacked")
        elif data_format in (2, 3):
            self.state = GifState.PROCESSING_IMAGE
            _log.debug("GIF: switching to ProcessingImage")
        else:
            raise GifError(
                f"Unsupported GIF data format: {data_format} (tag low: 0x{low:016X})"
            )

    def _packed(self, gs: Gs, read128: Callable[[int], int]) -> None:
        self.current_gif_addr = (self.current_gif_addr + 16) & _MASK32
        shift = (self.nregs - self.regs_left) << 2
        reg = (self.regs >> shift) & 0xF
        gs.write_packed_gif_data(reg, read128(self.current_gif_addr), self.q_bits)

        self.regs_left -= 1
        if self.regs_left == 0:
            self.regs_left = self.nregs
            self.current_nloop -= 1
        if self.current_nloop == 0:
            self._finish_tag()

    def _image(self, gs: Gs, data: int) -> None:
        gs.write_hwreg(data & _MASK64)
        gs.write_hwreg((data >> 64) & _MASK64)
        self.current_nloop -= 1
        if self.current_nloop == 0:
            self._finish_tag()

    def write32(self, addr: int, value: int) -> None:
        """Write a GIF register; writes to read-only or unknown ones are dropped."""
        value &= _MASK32
        reg = _decode(addr)
        if reg is GifRegister.CTRL:
            # bit 0: reset, bit 3: temporary stop
            self.ctrl = value & 0b1001
        elif reg is GifRegister.MODE:
            # bit 0: mask PATH3, bit 2: intermittent mode
            self.mode = value & 0b0101
        elif reg in _READ_ONLY:
            _log.debug(
                "Attempt to write read-only GIF register @ offset %#X", addr - GIF_BASE
            )
        else:
            _log.error("Invalid GIF write offset: %#X", addr - GIF_BASE)

    def _status(self) -> int:
        status = 0
        if self.mode & 0b0001:
            status |= 1 << 0
        if self.mode & 0b0100:
            status |= 1 << 2
        if self.ctrl & 0b1000:
            status |= 1 << 3
        return status

    def read32(self, addr: int) -> int:
        """Read a GIF register; unknown offsets read as zero."""
        reg = _decode(addr)
        if reg is None:
            _log.error("Invalid GIF read offset: %#X", addr - GIF_BASE)
            return 0
        if reg is GifRegister.STAT:
            return self._status()
        return getattr(self, reg.name.lower())

    def capture_tag(self, tag: int) -> None:
        """Latch a GIFtag into the TAG0-TAG3 registers."""
        self.tag0 = tag & _MASK32
        self.tag1 = (tag >> 32) & _MASK32
        self.tag2 = (tag >> 64) & _MASK32
        self.tag3 = (tag >> 96) & _MASK32

    def update_cnt(self, cnt: int) -> None:
        """Set the GIF_CNT register."""
        self.cnt = cnt & 0x1FFF_FFFF

    def set_p3_state(self, p3cnt: int, p3tag: int) -> None:
        """Record the PATH3 loop counter and tag at an interruption."""
        self.p3cnt = p3cnt & 0x7FFF
        self.p3tag = p3tag & _MASK32