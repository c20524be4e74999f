"""Colour math for the knit pipeline.

Every function accepts a single colour (any 3-sequence) or a stacked array
of shape ``(..., 3)`` and returns float64 arrays. Channel outputs are always
clamped to [0, 1] with non-finite values replaced, so nothing out of range
travels downstream.
"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np

from .config import Palette

# ITU-R BT.709 weights
LUMA_WEIGHTS = np.array([0.2126, 0.7152, 0.0722])

# 4x4 ordered dither matrix, normalised to [0, 1]
BAYER_4X4 = np.array(
    [
        [0, 8, 2, 10],
        [12, 4, 14, 6],
        [3, 11, 1, 9],
        [15, 7, 13, 5],
    ],
    dtype=np.float64,
) / 16.0

# Peak dither offset is +-5% of full scale at amount == 1
DITHER_SCALE = 0.1

MATCH_TOLERANCE = 0.01


def clamp01(values) -> np.ndarray:
    """Clamp to [0, 1], mapping NaN to 0 and infinities to the nearest bound."""
    arr = np.nan_to_num(np.asarray(values, dtype=np.float64), nan=0.0, posinf=1.0, neginf=0.0)
    return np.clip(arr, 0.0, 1.0)


def luminance(color) -> np.ndarray:
    """Weighted luminance; unclamped, so inputs outside [0, 1] give approximate values."""
    return np.asarray(color, dtype=np.float64) @ LUMA_WEIGHTS


def srgb_to_linear(channel) -> np.ndarray:
    c = np.asarray(channel, dtype=np.float64)
    return np.where(c <= 0.04045, c / 12.92, ((np.maximum(c, 0.0) + 0.055) / 1.055) ** 2.4)


def _palette_array(palette: Palette) -> np.ndarray:
    colors = palette.as_array() if isinstance(palette, Palette) else np.asarray(palette, dtype=np.float64)
    if colors.size == 0:
        raise ValueError("Cannot quantise against an empty palette")
    return colors.reshape(-1, 3)


def nearest_palette_color(color, palette: Palette) -> np.ndarray:
    """Return the palette member closest to ``color`` in linearised RGB.

    Ties resolve to the earliest palette entry (``np.argmin`` keeps the first
    minimum), so the result is stable for a given palette order.
    """
    colors = _palette_array(palette)
    src = clamp01(color)
    diff = srgb_to_linear(src)[..., np.newaxis, :] - srgb_to_linear(colors)
    distances = np.sqrt(np.sum(diff * diff, axis=-1))
    return colors[np.argmin(distances, axis=-1)].copy()


def apply_contrast(color, k: float) -> np.ndarray:
    if k == 1.0:
        return clamp01(color)
    return clamp01((np.asarray(color, dtype=np.float64) - 0.5) * k + 0.5)


def apply_saturation(color, s: float) -> np.ndarray:
    """Scale chroma about the luminance.

    Channels are clamped independently, so for ``s > 1`` colours near the
    bounds lose some hue accuracy.
    """
    rgb = np.asarray(color, dtype=np.float64)
    if s == 1.0:
        return clamp01(rgb)
    luma = luminance(rgb)[..., np.newaxis]
    return clamp01(luma + (rgb - luma) * s)


def bayer4(x, y):
    """Ordered-dither threshold at ``(x, y)``, periodic with period 4."""
    value = BAYER_4X4[np.asarray(y) % 4, np.asarray(x) % 4]
    return float(value) if np.ndim(value) == 0 else value


def apply_dither(color, amount: float, x, y) -> np.ndarray:
    rgb = np.asarray(color, dtype=np.float64)
    if amount <= 0:
        return clamp01(rgb)
    offset = (np.asarray(bayer4(x, y)) - 0.5) * amount * DITHER_SCALE
    return clamp01(rgb + np.asarray(offset)[..., np.newaxis])


def apply_palette_mix(color, mix: float, palette: Palette) -> np.ndarray:
    """Move ``color`` onto the palette.

    ``mix`` is accepted for configuration compatibility but quantisation is
    always strict: the result is the nearest palette colour.
    """
    return nearest_palette_color(color, palette)


def colors_match(a, b, tolerance: float = MATCH_TOLERANCE):
    """True where every channel of ``a`` and ``b`` differs by less than ``tolerance``."""
    delta = np.abs(np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64))
    result = np.all(delta < tolerance, axis=-1)
    return bool(result) if np.ndim(result) == 0 else result


def to_rgb8(color) -> Tuple[int, int, int]:
    r, g, b = (int(math.floor(c * 255.0 + 0.5)) for c in clamp01(color).reshape(3))
    return (r, g, b)
