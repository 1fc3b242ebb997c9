"""Graphics synthesizer: privileged registers, drawing registers and VRAM."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum

from .raster import (
    SPRITE,
    TRIANGLE,
    POINT,
    VERTICES_PER_PRIMITIVE,
    Primitive,
    Vertex,
    draw_point,
    draw_sprite,
    draw_triangle,
)

_log = logging.getLogger(__name__)

GS_BASE = 0x1200_0000
VRAM_SIZE = 4 * 1024 * 1024
INTERNAL_REGISTER_COUNT = 0x63

_MASK64 = 0xFFFF_FFFF_FFFF_FFFF
_PAGE_BYTES = 2048 * 4
_PIXELS_PER_WIDTH_UNIT = 64
_DISABLE_DRAWING_BIT = 0x8000_0000_0000

# Drawing registers that are only latched, with no side effect.
_PLAIN_REGISTERS = frozenset(
    [0x02, 0x03, 0x06, 0x07, 0x08, 0x09, 0x0A]
    + list(range(0x14, 0x1D))
    + [0x22, 0x34, 0x35, 0x36, 0x37, 0x3B, 0x3D, 0x3F]
    + list(range(0x40, 0x4C))
    + [0x4E, 0x4F, 0x60, 0x61, 0x62]
)

_PRIM = 0x00
_RGBAQ = 0x01
_ST = 0x02
_UV = 0x03
_XYZF2 = 0x04
_XYZ2 = 0x05
_FOG = 0x0A
_XYZF3 = 0x0C
_XYZ3 = 0x0D
_AD = 0x0E
_XYOFFSET_1 = 0x18
_SCISSOR_1 = 0x40
_FRAME_1 = 0x4C
_FRAME_2 = 0x4D
_ZBUF_1 = 0x4E
_BITBLTBUF = 0x50
_TRXPOS = 0x51
_TRXREG = 0x52
_TRXDIR = 0x53
_HWREG = 0x54


class GsError(Exception):
    """Raised on an invalid GS register access or an out-of-range VRAM transfer."""


class PrivilegedRegister(IntEnum):
    """Memory-mapped privileged GS registers, by address."""

    PMODE = GS_BASE + 0x000
    SMODE1 = GS_BASE + 0x010
    SMODE2 = GS_BASE + 0x020
    SRFSH = GS_BASE + 0x030
    SYNCH1 = GS_BASE + 0x040
    SYNCH2 = GS_BASE + 0x050
    SYNCV = GS_BASE + 0x060
    DISPFB1 = GS_BASE + 0x070
    DISPLAY1 = GS_BASE + 0x080
    DISPFB2 = GS_BASE + 0x090
    DISPLAY2 = GS_BASE + 0x0A0
    EXTBUF = GS_BASE + 0x0B0
    EXTDATA = GS_BASE + 0x0C0
    EXTWRITE = GS_BASE + 0x0D0
    BGCOLOR = GS_BASE + 0x0E0
    GS_CSR = GS_BASE + 0x1000
    GS_IMR = GS_BASE + 0x1010
    BUSDIR = GS_BASE + 0x1040
    SIGLBLID = GS_BASE + 0x1080

    @property
    def attribute(self) -> str:
        return self.name.lower()


def _decode(offset: int) -> PrivilegedRegister | None:
    try:
        return PrivilegedRegister(offset)
    except ValueError:
        return None


def _signed16(value: int) -> int:
    value &= 0xFFFF
    return value - 0x10000 if value & 0x8000 else value


@dataclass
class _FrameInfo:
    fbp: int = 0
    fbw: int = 0
    psm: int = 0

    @classmethod
    def from_register(cls, data: int) -> _FrameInfo:
        return cls(data & 0x1FF, (data >> 16) & 0x3F, (data >> 24) & 0x3F)


@dataclass
class _Transfer:
    bitbltbuf: int = 0
    trxpos: int = 0
    trxreg: int = 0
    trxdir: int = 0
    source_base: int = 0
    source_width: int = 0
    source_format: int = 0
    dest_base: int = 0
    dest_width: int = 0
    dest_format: int = 0
    source_rect_x: int = 0
    source_rect_y: int = 0
    dest_rect_x: int = 0
    dest_rect_y: int = 0
    order: int = 0
    area_width: int = 0
    area_height: int = 0
    direction: int = 0
    source_x: int = 0
    source_y: int = 0
    dest_x: int = 0
    dest_y: int = 0


class Gs:
    """The GS register blocks, its 4 MiB of VRAM and the primitive queue."""

    def __init__(self) -> None:
        for reg in PrivilegedRegister:
            setattr(self, reg.attribute, 0)
        self.registers: list[int] = [0] * INTERNAL_REGISTER_COUNT
        self.hwreg = 0
        self.vram = bytearray(VRAM_SIZE)
        self.transfer = _Transfer()
        self.framebuffer = _FrameInfo()
        self.current_prim = 0
        self.vertex_queue: list[Vertex] = []
        self.buffered_primitives: list[Primitive] = []

    # Display readout

    def _copy_row(self, frame: bytearray, dst: int, src: int, pixels: int) -> None:
        available = max(0, len(self.vram) - src) // 4
        count = min(pixels, available)
        if count > 0:
            frame[dst : dst + count * 4] = self.vram[src : src + count * 4]

    def get_vram_data(self) -> tuple[bytearray | None, int, int]:
        """Return a 640x480 RGBA copy of the current drawing framebuffer."""
        width, height = 640, 480
        fb = self.framebuffer
        if fb.psm != 0:
            return None, width, height
        frame = bytearray(width * height * 4)
        base = fb.fbp * _PAGE_BYTES
        stride = fb.fbw * _PIXELS_PER_WIDTH_UNIT
        for y in range(height):
            self._copy_row(frame, y * width * 4, base + y * stride * 4, width)
        return frame, width, height

    def get_framebuffer_data(self) -> tuple[bytearray | None, int, int]:
        """Return the displayed area of the enabled read circuit and its size."""
        en1 = bool(self.pmode & 1)
        en2 = bool(self.pmode & 2)
        if not en1 and not en2:
            return None, 0, 0
        dispfb, display = (
            (self.dispfb1, self.display1) if en1 else (self.dispfb2, self.display2)
        )

        fbp = dispfb & 0x1FF
        fbw = (dispfb >> 9) & 0x3F
        psm = (dispfb >> 15) & 0x1F
        if psm != 0:
            return None, 0, 0
        dbx = (dispfb >> 32) & 0x7FF
        dby = (dispfb >> 43) & 0x7FF

        mag_h = ((display >> 23) & 0xF) + 1
        mag_v = ((display >> 27) & 0x3) + 1
        display_width = ((display >> 32) & 0xFFF) + 1
        display_height = ((display >> 44) & 0x7FF) + 1

        read_width = -(-display_width // mag_h)
        read_height = -(-display_height // mag_v)
        stride = fbw * _PIXELS_PER_WIDTH_UNIT
        base = fbp * _PAGE_BYTES

        frame = bytearray(read_width * read_height * 4)
        for py in range(read_height):
            src = base + ((dby + py) * stride + dbx) * 4
            self._copy_row(frame, py * read_width * 4, src, read_width)
        return frame, read_width, read_height

    # Privileged registers

    def write64(self, offset: int, value: int) -> None:
        """Write a privileged register; raises GsError for an unknown address."""
        value &= _MASK64
        reg = _decode(offset)
        if reg is None:
            raise GsError(f"Invalid GS write offset: {offset:#X}")
        if reg is PrivilegedRegister.GS_CSR:
            # Bits 5 and 6 always read back as 0 after a write.
            csr = value & ~0x60
            reset = (csr >> 9) & 1
            vsync = (csr >> 3) & 1
            self.gs_csr = 0 if reset and vsync else csr
            if value & (1 << 3):
                # Writing 1 to the VSINT bit acknowledges it.
                self.gs_csr &= ~(1 << 3)
        else:
            setattr(self, reg.attribute, value)

    def read64(self, offset: int) -> int:
        """Read a privileged register; unknown addresses read as zero."""
        reg = _decode(offset)
        if reg is None:
            _log.error("Invalid GS read offset: %#X", offset)
            return 0
        return getattr(self, reg.attribute)

    # Drawing registers

    def write_internal_reg(self, reg: int, data: int) -> None:
        """Write a drawing register by its GS register number."""
        data &= _MASK64
        if reg == _PRIM:
            self.registers[_PRIM] = data
            self._select_prim(data)
        elif reg == _RGBAQ:
            r = data & 0xFF
            g = (data >> 8) & 0xFF
            b = (data >> 16) & 0xFF
            a = (data >> 24) & 0xFF
            q = data >> 32
            self.registers[_RGBAQ] = b | (g << 8) | (r << 16) | (a << 24) | (q << 32)
        elif reg in (_XYZF2, _XYZ2, _XYZF3, _XYZ3):
            v = (data & 0xFFFF) | (((data >> 16) & 0xFFFF) << 16) | ((data >> 32) << 32)
            self.registers[reg] = data if reg == _XYZ2 else v
            self._add_vertex(v)
        elif reg in (_FRAME_1, _FRAME_2):
            self.registers[reg] = data
            self.framebuffer = _FrameInfo.from_register(data)
        elif reg == _BITBLTBUF:
            self._set_bitbltbuf(data)
        elif reg == _TRXPOS:
            self._set_trxpos(data)
        elif reg == _TRXREG:
            self._set_trxreg(data)
        elif reg == _TRXDIR:
            self._set_trxdir(data)
        elif reg == _HWREG:
            self.write_hwreg(data)
        elif reg in _PLAIN_REGISTERS:
            self.registers[reg] = data
        else:
            raise GsError(
                f"GS: write_internal_reg invalid reg 0x{reg:02X} = 0x{data:016X}"
            )

    def write_packed_gif_data(self, reg: int, data: int, q: int) -> int:
        """Handle one PACKED-mode GIF quadword; returns the Q value in effect after it."""
        low = data & _MASK64
        high = (data >> 64) & _MASK64

        if reg == _PRIM:
            prim = low & 0x3FF
            self.registers[_PRIM] = prim
            self._select_prim(prim)
        elif reg == _RGBAQ:
            r = low & 0xFF
            g = (low >> 32) & 0xFF
            b = high & 0xFF
            a = (high >> 32) & 0xFF
            self.registers[_RGBAQ] = (a << 24) | (r << 16) | (g << 8) | b
        elif reg == _ST:
            q = high & 0xFFFF_FFFF
            self.registers[_ST] = low
        elif reg == _UV:
            self.registers[_UV] = (low & 0x3FFF) | (low >> 16)
        elif reg in (_XYZF2, _XYZ2):
            x = low & 0xFFFF
            y = (low >> 32) & 0xFFFF
            z = high >> 32
            v = x | (y << 16) | (z << 32)
            disable_drawing = bool(high & _DISABLE_DRAWING_BIT)
            index = reg + 0x08 if disable_drawing else reg
            self._add_vertex(v)
            self.registers[index] = v
        elif reg == _FOG:
            self.registers[_FOG] = (high << 20) & _MASK64
        elif reg == _XYZF3:
            self.registers[_XYZF3] = low
        elif reg == _AD:
            self.write_internal_reg(high, low)
        elif reg in (0x08, 0x09, 0x0D, 0x0F):
            pass
        else:
            raise GsError(f"GS: write_packed_gif_data invalid reg 0x{reg:02X}")
        return q

    # Local transfers

    def write_hwreg(self, data: int) -> None:
        """Push 64 bits of image data through the host-to-local transfer."""
        self.hwreg = data & _MASK64
        self._transfer_vram()

    def _transfer_vram(self) -> None:
        t = self.transfer
        if t.direction != 0:
            return
        pixel_offset = (t.dest_rect_y + t.dest_y) * t.dest_width + (
            t.dest_rect_x + t.dest_x
        )
        addr = t.dest_base * 4 + pixel_offset * 4
        if addr + 8 <= len(self.vram):
            self.vram[addr : addr + 8] = self.hwreg.to_bytes(8, "little")
        t.dest_x += 2
        if t.dest_x >= t.area_width:
            t.dest_x = 0
            t.dest_y += 1

    def _set_bitbltbuf(self, data: int) -> None:
        t = self.transfer
        t.bitbltbuf = data
        t.source_base = (data & 0x3FFF) << 6
        t.source_width = ((data >> 16) & 0x3F) << 6
        t.source_format = (data >> 24) & 0x3F
        t.dest_base = ((data >> 32) & 0x3FFF) << 6
        t.dest_width = ((data >> 48) & 0x3F) << 6
        t.dest_format = (data >> 56) & 0x3F

    def _set_trxpos(self, data: int) -> None:
        t = self.transfer
        t.trxpos = data
        t.source_rect_x = data & 0x7FF
        t.source_rect_y = (data >> 16) & 0x7FF
        t.dest_rect_x = (data >> 32) & 0x7FF
        t.dest_rect_y = (data >> 48) & 0x7FF
        t.order = (data >> 59) & 3

    def _set_trxreg(self, data: int) -> None:
        t = self.transfer
        t.trxreg = data
        t.area_width = data & 0xFFF
        t.area_height = (data >> 32) & 0xFFF

    def _set_trxdir(self, data: int) -> None:
        t = self.transfer
        t.trxdir = data
        t.direction = data & 3
        t.source_x = t.source_y = 0
        t.dest_x = t.dest_y = 0
        if t.direction == 2:
            self._blit_vram()

    def _blit_vram(self) -> None:
        t = self.transfer
        width = t.area_width
        vram_words = VRAM_SIZE // 4
        for y in range(t.area_height):
            src = (
                t.source_base
                + t.source_rect_x
                + t.source_rect_y * t.source_width
                + y * t.source_width
            )
            dst = (
                t.dest_base
                + t.dest_rect_x
                + t.dest_rect_y * t.dest_width
                + y * t.dest_width
            )
            if src + width > vram_words or dst + width > vram_words:
                _log.error("VRAM blit out of bounds (word range)")
                raise GsError("VRAM blit out of bounds")
            length = width * 4
            self.vram[dst * 4 : dst * 4 + length] = self.vram[src * 4 : src * 4 + length]

    # Primitive assembly

    def _select_prim(self, data: int) -> None:
        self.current_prim = data & 0x7

    def _add_vertex(self, data: int) -> None:
        offset = self.registers[_XYOFFSET_1]
        x_fixed = _signed16(_signed16(data) - _signed16(offset))
        y_fixed = _signed16(_signed16(data >> 16) - _signed16(offset >> 32))

        rgbaq = self.registers[_RGBAQ]
        self.vertex_queue.append(
            Vertex(
                x=x_fixed / 16.0,
                y=y_fixed / 16.0,
                z=0,
                r=(rgbaq >> 16) & 0xFF,
                g=(rgbaq >> 8) & 0xFF,
                b=rgbaq & 0xFF,
                a=(rgbaq >> 24) & 0xFF,
            )
        )

        prim_type = self.current_prim & 0x7
        required = VERTICES_PER_PRIMITIVE.get(prim_type)
        if required is None or len(self.vertex_queue) < required:
            return
        vertices = self.vertex_queue[:required]
        del self.vertex_queue[:required]
        self.buffered_primitives.append(
            Primitive(
                prim_type=prim_type,
                vertices=vertices,
                scissor=self.registers[_SCISSOR_1],
                zbuf=self.registers[_ZBUF_1],
                frame=self.registers[_BITBLTBUF],
                ctx=(self.registers[_PRIM] >> 9) & 1,
            )
        )

    def draw_buffered(self) -> None:
        """Rasterise every queued primitive into VRAM and empty the queue."""
        primitives, self.buffered_primitives = self.buffered_primitives, []
        saved = self.framebuffer
        drawers = {POINT: draw_point, TRIANGLE: draw_triangle, SPRITE: draw_sprite}
        for prim in primitives:
            if prim.ctx == 0:
                self.framebuffer = _FrameInfo.from_register(self.registers[_FRAME_1])
            elif prim.ctx == 1:
                self.framebuffer = _FrameInfo.from_register(self.registers[_FRAME_2])
            drawer = drawers.get(prim.prim_type)
            if drawer is not None:
                drawer(
                    self.vram,
                    prim.vertices,
                    self.registers[_SCISSOR_1],
                    self.registers[_ZBUF_1],
                    self.framebuffer.fbp,
                    self.framebuffer.fbw,
                )
        self.framebuffer = saved