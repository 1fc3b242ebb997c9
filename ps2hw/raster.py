"""Software rasterisation of GS points, triangles and sprites into VRAM."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

POINT = 0
TRIANGLE = 3
SPRITE = 6

# Vertices needed to complete a primitive of each drawable type.
VERTICES_PER_PRIMITIVE = {POINT: 1, TRIANGLE: 3, SPRITE: 2}

_PAGE_BYTES = 2048 * 4
_PIXELS_PER_WIDTH_UNIT = 64


@dataclass(frozen=True)
class Vertex:
    """A vertex in window coordinates with its colour."""

    x: float = 0.0
    y: float = 0.0
    z: int = 0
    r: int = 0
    g: int = 0
    b: int = 0
    a: int = 0


@dataclass
class Primitive:
    """A complete primitive waiting to be drawn, with the state it was kicked under."""

    prim_type: int
    vertices: list[Vertex] = field(default_factory=list)
    scissor: int = 0
    zbuf: int = 0
    frame: int = 0
    ctx: int = 0


def scissor_bounds(scissor: int) -> tuple[int, int, int, int]:
    """Split a SCISSOR register into (x0, x1, y0, y1)."""
    return (
        scissor & 0x7FF,
        (scissor >> 16) & 0x7FF,
        (scissor >> 32) & 0x7FF,
        (scissor >> 48) & 0x7FF,
    )


def _z_masked(zbuf: int) -> bool:
    return bool((zbuf >> 32) & 0x1)


def _pixel_address(x: int, y: int, fbp: int, fbw: int) -> int:
    return fbp * _PAGE_BYTES + (y * fbw * _PIXELS_PER_WIDTH_UNIT + x) * 4


def _clamp(value: int, low: int, high: int) -> int:
    if low > high:
        raise ValueError(f"clamp bounds reversed: {low} > {high}")
    return max(low, min(value, high))


def _put(vram: bytearray, addr: int, colour: tuple[int, int, int, int]) -> None:
    vram[addr : addr + 4] = bytes(c & 0xFF for c in colour)


def draw_point(vram, vertices, scissor, zbuf, fbp, fbw) -> None:
    """Draw a single point, clamped into the scissor rectangle."""
    v = vertices[0]
    x0, x1, y0, y1 = scissor_bounds(scissor)
    x = _clamp(math.floor(v.x), x0, x1)
    y = _clamp(math.floor(v.y), y0, y1)

    addr = _pixel_address(x, y, fbp, fbw)
    if addr + 4 > len(vram):
        return
    if not _z_masked(zbuf):
        _put(vram, addr, (v.a, v.r, v.g, v.b))


def _edge(a: Vertex, b: Vertex, px: float, py: float) -> float:
    return (px - a.x) * (b.y - a.y) - (py - a.y) * (b.x - a.x)


def draw_triangle(vram, vertices, scissor, zbuf, fbp, fbw) -> None:
    """Fill a triangle flat-shaded with the colour of its last vertex."""
    v0, v1, v2 = vertices[0], vertices[1], vertices[2]
    sx0, sx1, sy0, sy1 = scissor_bounds(scissor)

    xs = (v0.x, v1.x, v2.x)
    ys = (v0.y, v1.y, v2.y)
    min_x = max(math.floor(min(xs)), sx0)
    max_x = min(math.ceil(max(xs)), sx1)
    min_y = max(math.floor(min(ys)), sy0)
    max_y = min(math.ceil(max(ys)), sy1)

    area = _edge(v0, v1, v2.x, v2.y)
    if area == 0.0:
        return
    sign = -1.0 if area < 0.0 else 1.0
    write = not _z_masked(zbuf)
    colour = (v2.r, v2.g, v2.b, v2.a)

    for y in range(min_y, max_y + 1):
        py = y + 0.5
        for x in range(min_x, max_x + 1):
            px = x + 0.5
            w0 = sign * _edge(v1, v2, px, py)
            w1 = sign * _edge(v2, v0, px, py)
            w2 = sign * _edge(v0, v1, px, py)
            if w0 < 0.0 or w1 < 0.0 or w2 < 0.0:
                continue
            addr = _pixel_address(x, y, fbp, fbw)
            if addr + 4 > len(vram):
                continue
            if write:
                _put(vram, addr, colour)


def draw_sprite(vram, vertices, scissor, zbuf, fbp, fbw) -> None:
    """Fill the axis-aligned rectangle spanned by two vertices with the second's colour."""
    v0, v1 = vertices[0], vertices[1]
    sx0, sx1, sy0, sy1 = scissor_bounds(scissor)

    min_x = max(math.floor(min(v0.x, v1.x)), sx0)
    max_x = min(math.ceil(max(v0.x, v1.x)), sx1)
    min_y = max(math.floor(min(v0.y, v1.y)), sy0)
    max_y = min(math.ceil(max(v0.y, v1.y)), sy1)

    write = not _z_masked(zbuf)
    colour = (v1.r, v1.g, v1.b, v1.a)

    for y in range(min_y, max_y + 1):
        for x in range(min_x, max_x + 1):
            addr = _pixel_address(x, y, fbp, fbw)
            if addr + 4 > len(vram):
                continue
            if write:
                _put(vram, addr, colour)