"""Downsample source images onto the knit grid."""

from __future__ import annotations

import logging

import cv2
import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

# Cells whose sampled alpha falls below this are background, not drawable
ALPHA_CUTOFF = 0.05


def to_rgba_array(image) -> np.ndarray:
    """Normalise a PIL image or numpy array to an ``H x W x 4`` uint8 array.

    Args:
        image: ``PIL.Image.Image`` or array shaped ``HxW``, ``HxWx3`` or
            ``HxWx4``. Float arrays are read as [0, 1] intensities.

    Returns:
        Contiguous RGBA uint8 array.

    Raises:
        ValueError: If the image is empty or has an unsupported shape.
    """
    if isinstance(image, Image.Image):
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        arr = np.asarray(image)
    else:
        arr = np.asarray(image)

    if arr.ndim == 2:
        arr = arr[:, :, np.newaxis].repeat(3, axis=2)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise ValueError(f"Unsupported image shape: {arr.shape}")
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise ValueError("Source image is empty")

    if arr.dtype != np.uint8:
        if np.issubdtype(arr.dtype, np.floating):
            arr = np.nan_to_num(arr, nan=0.0) * 255.0 + 0.5
        arr = np.clip(arr, 0, 255).astype(np.uint8)

    if arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        arr = np.concatenate([arr, alpha], axis=2)
    return np.ascontiguousarray(arr)


def sample_grid(image, cols: int, rows: int, interpolation: int = cv2.INTER_NEAREST_EXACT) -> np.ndarray:
    """Downscale ``image`` to one RGBA sample per grid cell.

    Smoothing is off by default: each cell takes the source pixel under its
    centre (``INTER_NEAREST_EXACT``), not the top-left pixel of its block.

    Returns:
        ``(rows, cols, 4)`` float64 array in [0, 1]; ``(0, 0, 4)`` when either
        dimension is not positive.
    """
    if cols <= 0 or rows <= 0:
        return np.zeros((0, 0, 4), dtype=np.float64)

    rgba = to_rgba_array(image)
    small = cv2.resize(rgba, (int(cols), int(rows)), interpolation=interpolation)
    logger.debug("Sampled %dx%d source onto %dx%d grid", rgba.shape[1], rgba.shape[0], cols, rows)
    return small.astype(np.float64) / 255.0


def opaque_mask(samples: np.ndarray) -> np.ndarray:
    """Boolean mask of cells opaque enough to draw."""
    if samples.size == 0:
        return np.zeros(samples.shape[:2], dtype=bool)
    return samples[..., 3] >= ALPHA_CUTOFF
