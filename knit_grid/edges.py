"""Sobel edge map over the downsampled grid.

Gradients are measured at grid resolution, so edges follow the mosaic's own
cells rather than fine detail in the source image.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .color import luminance

logger = logging.getLogger(__name__)

EDGE_THRESHOLD = 0.15

SOBEL_X = np.array(
    [
        [-1, 0, 1],
        [-2, 0, 2],
        [-1, 0, 1],
    ],
    dtype=np.float64,
)
SOBEL_Y = SOBEL_X.T.copy()


def gradient_magnitude(luma: np.ndarray) -> np.ndarray:
    """Sobel gradient magnitude with edge-clamped borders.

    Out-of-bounds neighbours reuse the nearest in-bounds value (no wrap, no
    zero padding).
    """
    luma = np.asarray(luma, dtype=np.float64)
    if luma.size == 0:
        return np.zeros(luma.shape, dtype=np.float64)

    h, w = luma.shape
    padded = np.pad(luma, 1, mode="edge")
    gx = np.zeros((h, w), dtype=np.float64)
    gy = np.zeros((h, w), dtype=np.float64)
    for ky in range(3):
        for kx in range(3):
            window = padded[ky:ky + h, kx:kx + w]
            if SOBEL_X[ky, kx]:
                gx += SOBEL_X[ky, kx] * window
            if SOBEL_Y[ky, kx]:
                gy += SOBEL_Y[ky, kx] * window
    return np.hypot(gx, gy)


def detect_edges(
    samples: np.ndarray,
    width: Optional[int] = None,
    height: Optional[int] = None,
    threshold: float = EDGE_THRESHOLD,
) -> np.ndarray:
    """Flag grid cells whose luminance gradient exceeds ``threshold``.

    Args:
        samples: ``(rows, cols, 3|4)`` grid in [0, 1] from ``sample_grid``.
        width: Expected column count (defaults to the grid's).
        height: Expected row count (defaults to the grid's).
        threshold: Magnitude cut-off in the normalised luminance domain.

    Returns:
        ``(rows, cols)`` boolean edge map.
    """
    samples = np.asarray(samples, dtype=np.float64)
    if samples.ndim != 3 or samples.size == 0:
        return np.zeros(samples.shape[:2] if samples.ndim >= 2 else (0, 0), dtype=bool)

    rows, cols = samples.shape[:2]
    if (width is not None and width != cols) or (height is not None and height != rows):
        raise ValueError(f"Grid is {cols}x{rows}, expected {width}x{height}")

    luma = luminance(samples[..., :3])
    edges = gradient_magnitude(luma) > threshold
    logger.debug("Edge map: %d of %d cells flagged", int(edges.sum()), edges.size)
    return edges
