"""Pixel-aligned glyph geometry.

Squares and diamonds snap their centres to whole pixels; circles snap to
half pixels, which keeps their edges even when smoothing is on.
"""

from __future__ import annotations

import math

from .config import Glyph
from .surface import DrawCommand, RGBA8


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def square_command(cx: float, cy: float, size: float, color: RGBA8) -> DrawCommand:
    half = size * 0.5
    x = round_half_up(cx - half)
    y = round_half_up(cy - half)
    w = round_half_up(size)
    return DrawCommand("rect", ((x, y), (w, w)), color)


def circle_command(cx: float, cy: float, size: float, color: RGBA8) -> DrawCommand:
    x = round_half_up(cx * 2) / 2
    y = round_half_up(cy * 2) / 2
    return DrawCommand("circle", ((x, y),), color, radius=size * 0.5)


def diamond_command(cx: float, cy: float, size: float, color: RGBA8) -> DrawCommand:
    half = size * 0.5
    x = round_half_up(cx)
    y = round_half_up(cy)
    # top, right, bottom, left
    points = ((x, y - half), (x + half, y), (x, y + half), (x - half, y))
    return DrawCommand("polygon", points, color)


_BUILDERS = {
    Glyph.SQUARE: square_command,
    Glyph.CIRCLE: circle_command,
    Glyph.DIAMOND: diamond_command,
}


def glyph_command(glyph: Glyph, cx: float, cy: float, size: float, color: RGBA8) -> DrawCommand:
    return _BUILDERS[Glyph(glyph)](cx, cy, size, color)
