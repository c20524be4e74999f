"""Per-cell colour pipeline: contrast -> saturation -> dither -> palette."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from .color import (
    apply_contrast,
    apply_dither,
    apply_palette_mix,
    apply_saturation,
    nearest_palette_color,
)
from .config import KnitParams, Palette
from .sampler import opaque_mask

logger = logging.getLogger(__name__)


@dataclass
class CellColors:
    """Finalised colours for one frame's grid."""

    colors: np.ndarray    # (rows, cols, 3) palette colours
    drawable: np.ndarray  # (rows, cols) False for transparent cells

    @property
    def shape(self):
        return self.drawable.shape


def transform_color(color, params: KnitParams, palette: Palette, x: int = 0, y: int = 0) -> np.ndarray:
    """Run one colour through the full cell pipeline.

    Dither is applied before quantisation so the pattern can push borderline
    colours into a neighbouring palette bucket; quantisation runs last and is
    idempotent.
    """
    rgb = apply_contrast(color, params.contrast)
    rgb = apply_saturation(rgb, params.saturation)
    rgb = apply_dither(rgb, params.dither, x, y)
    rgb = apply_palette_mix(rgb, params.palette_mix, palette)
    return nearest_palette_color(rgb, palette)


def transform_cells(samples: np.ndarray, params: KnitParams, palette: Palette) -> CellColors:
    """Quantise every cell of a sampled grid.

    Args:
        samples: ``(rows, cols, 4)`` RGBA grid in [0, 1].
        params: Render parameters for this frame.
        palette: Quantisation palette; its background colour fills
            transparent cells.

    Returns:
        CellColors with palette colours and the drawable mask.
    """
    rows, cols = samples.shape[:2]
    if rows == 0 or cols == 0:
        return CellColors(
            colors=np.zeros((rows, cols, 3), dtype=np.float64),
            drawable=np.zeros((rows, cols), dtype=bool),
        )

    ys, xs = np.mgrid[0:rows, 0:cols]
    colors = transform_color(samples[..., :3], params, palette, xs, ys)

    drawable = opaque_mask(samples)
    colors[~drawable] = palette.background
    logger.debug(
        "Quantised %d cells (%d transparent)", drawable.size, int((~drawable).sum())
    )
    return CellColors(colors=colors, drawable=drawable)
