"""Find the dominant non-background colour of a quantised grid."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

import numpy as np

from .color import MATCH_TOLERANCE, clamp01, colors_match

logger = logging.getLogger(__name__)


def count_colors(
    colors: np.ndarray,
    background,
    tolerance: float = MATCH_TOLERANCE,
) -> Dict[Tuple[int, int, int], int]:
    """Count quantised colours, skipping cells that match the background.

    Keys are 8-bit RGB tuples in order of first appearance (row-major scan),
    which makes the tie-break in ``find_prominent_color`` deterministic.
    """
    flat = np.asarray(colors, dtype=np.float64).reshape(-1, 3)
    if flat.size == 0:
        return {}

    keep = ~np.asarray(colors_match(flat, background, tolerance), dtype=bool).reshape(-1)
    counts: Dict[Tuple[int, int, int], int] = {}
    keys = np.floor(clamp01(flat[keep]) * 255.0 + 0.5).astype(np.int64)
    for key in map(tuple, keys.tolist()):
        counts[key] = counts.get(key, 0) + 1
    return counts


def find_prominent_color(
    colors: np.ndarray,
    background,
    tolerance: float = MATCH_TOLERANCE,
) -> Optional[np.ndarray]:
    """Most frequent non-background colour, or ``None`` if there is none.

    Ties go to whichever colour appeared first.
    """
    counts = count_colors(colors, background, tolerance)
    best_key = None
    best_count = 0
    for key, count in counts.items():
        if count > best_count:
            best_key, best_count = key, count

    if best_key is None:
        logger.debug("No non-background cells; prominence undefined")
        return None
    logger.debug("Prominent colour %s (%d cells)", best_key, best_count)
    return np.array(best_key, dtype=np.float64) / 255.0
