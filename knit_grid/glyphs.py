"""Glyph selection policies.

Two strategies are available behind ``GlyphPolicy``:

``ProminenceGlyphPolicy`` (the renderer default)
    Cells in the frame's prominent colour get a circle/square checkerboard,
    every other colour gets a diamond. Edge cells can be pulled towards
    diamonds by ``edge_crispness``.

``LuminanceGlyphPolicy``
    Picks the shape from cell luminance with two cut points, darkening edge
    cells first. Kept as an alternate; it never feeds the default renderer.

The edge override uses ``edge_roll``, a hash of the cell coordinates and the
frame seed, so identical inputs always produce identical glyph grids.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple, Type

import numpy as np

from .color import MATCH_TOLERANCE, colors_match, luminance
from .config import Glyph, KnitParams

logger = logging.getLogger(__name__)

# Probability of forcing a diamond on an edge cell at edge_crispness == 1
EDGE_OVERRIDE_WEIGHT = 0.3

# Luminance cut points: navy ~0.19 -> diamond, blue ~0.28 -> square,
# yellow ~0.89 -> circle
LUMA_THRESHOLDS = (0.20, 0.50)

_MASK32 = np.uint64(0xFFFFFFFF)


def _mix32(h):
    h = h ^ (h >> np.uint64(16))
    h = (h * np.uint64(0x85EBCA6B)) & _MASK32
    h = h ^ (h >> np.uint64(13))
    h = (h * np.uint64(0xC2B2AE35)) & _MASK32
    return h ^ (h >> np.uint64(16))


def edge_roll(x, y, seed: int = 0):
    """Deterministic pseudo-random value in [0, 1) for cell ``(x, y)``."""
    xs = np.asarray(x, dtype=np.int64).astype(np.uint64) & _MASK32
    ys = np.asarray(y, dtype=np.int64).astype(np.uint64) & _MASK32
    h = _mix32(np.uint64(int(seed) & 0xFFFFFFFF) ^ np.uint64(0x9E3779B9))
    h = _mix32(h ^ xs)
    h = _mix32(h ^ ((ys * np.uint64(0x27D4EB2F)) & _MASK32))
    value = h.astype(np.float64) / 4294967296.0
    return float(value) if np.ndim(value) == 0 else value


def select_glyph(
    color,
    is_edge: bool,
    x: int,
    y: int,
    prominent,
    background,
    edge_crispness: float,
    seed: int = 0,
    tolerance: float = MATCH_TOLERANCE,
) -> Optional[Glyph]:
    """Choose the glyph for one cell, or ``None`` for a background cell."""
    if colors_match(color, background, tolerance):
        return None

    if prominent is not None and colors_match(color, prominent, tolerance):
        glyph = Glyph.CIRCLE if (x + y) % 2 == 0 else Glyph.SQUARE
    else:
        glyph = Glyph.DIAMOND

    if is_edge and edge_crispness > 0:
        if edge_roll(x, y, seed) < edge_crispness * EDGE_OVERRIDE_WEIGHT:
            glyph = Glyph.DIAMOND
    return glyph


def pick_glyph(luma: float, t1: float, t2: float, edge_bias: float, is_edge: bool) -> Glyph:
    """Luminance-threshold glyph choice.

    On edges with a positive bias the luminance is darkened by up to 30%
    before comparing against the cut points.
    """
    adjusted = luma
    if is_edge and edge_bias > 0:
        adjusted = luma * (1 - edge_bias * EDGE_OVERRIDE_WEIGHT)

    if adjusted < t1:
        return Glyph.DIAMOND
    if adjusted > t2:
        return Glyph.CIRCLE
    return Glyph.SQUARE


def calculate_thresholds() -> Tuple[float, float]:
    return LUMA_THRESHOLDS


class GlyphPolicy(ABC):
    """Maps a frame's quantised colours to a grid of glyphs."""

    name = ""

    @abstractmethod
    def assign(
        self,
        colors: np.ndarray,
        drawable: np.ndarray,
        edges: np.ndarray,
        prominent: Optional[np.ndarray],
        background: np.ndarray,
        params: KnitParams,
    ) -> np.ndarray:
        """Return an object array of ``Glyph`` (``None`` where nothing is drawn)."""

    @staticmethod
    def _empty(shape) -> np.ndarray:
        return np.full(shape, None, dtype=object)


class ProminenceGlyphPolicy(GlyphPolicy):
    name = "prominence"

    def assign(self, colors, drawable, edges, prominent, background, params):
        # Vectorised form of select_glyph over the whole grid
        rows, cols = drawable.shape
        glyphs = self._empty((rows, cols))
        if rows == 0 or cols == 0:
            return glyphs

        ys, xs = np.mgrid[0:rows, 0:cols]
        visible = drawable & ~np.asarray(colors_match(colors, background), dtype=bool)
        if prominent is not None:
            is_prominent = visible & np.asarray(colors_match(colors, prominent), dtype=bool)
        else:
            is_prominent = np.zeros_like(visible)
        even = (xs + ys) % 2 == 0

        glyphs[visible] = Glyph.DIAMOND
        glyphs[is_prominent & even] = Glyph.CIRCLE
        glyphs[is_prominent & ~even] = Glyph.SQUARE

        if params.edge_crispness > 0:
            rolls = edge_roll(xs, ys, params.seed)
            forced = visible & edges & (rolls < params.edge_crispness * EDGE_OVERRIDE_WEIGHT)
            glyphs[forced] = Glyph.DIAMOND
        return glyphs


class LuminanceGlyphPolicy(GlyphPolicy):
    name = "luminance"

    def __init__(self, thresholds: Optional[Tuple[float, float]] = None):
        self.thresholds = thresholds or calculate_thresholds()

    def assign(self, colors, drawable, edges, prominent, background, params):
        t1, t2 = self.thresholds
        rows, cols = drawable.shape
        glyphs = self._empty((rows, cols))
        if rows == 0 or cols == 0:
            return glyphs

        lumas = luminance(colors)
        skip = ~drawable | np.asarray(colors_match(colors, background), dtype=bool)
        for y in range(rows):
            for x in range(cols):
                if skip[y, x]:
                    continue
                glyphs[y, x] = pick_glyph(
                    float(lumas[y, x]), t1, t2, params.edge_crispness, bool(edges[y, x])
                )
        return glyphs


POLICIES: Dict[str, Type[GlyphPolicy]] = {
    ProminenceGlyphPolicy.name: ProminenceGlyphPolicy,
    LuminanceGlyphPolicy.name: LuminanceGlyphPolicy,
}


def get_policy(name: str) -> GlyphPolicy:
    try:
        return POLICIES[name]()
    except KeyError:
        raise ValueError(
            f"Unknown glyph policy {name!r}; choose from {', '.join(sorted(POLICIES))}"
        ) from None
