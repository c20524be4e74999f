"""Frame renderer: source image + params -> ordered draw commands.

Each call builds a fresh ``FrameContext`` (samples, edge map, quantised
colours, prominent colour, glyphs) and throws it away afterwards; nothing is
cached between frames.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import numpy as np

from .cells import transform_cells
from .color import to_rgb8
from .config import (
    ACTIVE_PALETTE,
    GLYPH_SCALE,
    GRID_LINE_ALPHA,
    GRID_LINE_COLOR,
    GRID_LINE_WIDTH,
    MAX_STITCH_PX,
    MIN_STITCH_PX,
    KnitParams,
    Palette,
)
from .edges import detect_edges
from .glyphs import GlyphPolicy, ProminenceGlyphPolicy
from .prominence import find_prominent_color
from .sampler import sample_grid
from .shapes import glyph_command, round_half_up
from .surface import CanvasSurface, DrawCommand, Surface, SurfaceUnavailableError

logger = logging.getLogger(__name__)


def grid_dimensions(size: int, stitch_px: float) -> Tuple[int, int]:
    """Return ``(cols, rows)`` for a square canvas of ``size`` pixels."""
    stitch = max(MIN_STITCH_PX, min(MAX_STITCH_PX, stitch_px))
    count = max(0, int(size // stitch))
    return count, count


@dataclass
class FrameContext:
    """Intermediate data for a single render pass."""

    size: int
    cols: int
    rows: int
    background: np.ndarray
    samples: np.ndarray
    edges: np.ndarray
    colors: np.ndarray
    drawable: np.ndarray
    prominent: Optional[np.ndarray]
    glyphs: np.ndarray

    @property
    def is_empty(self) -> bool:
        return self.cols == 0 or self.rows == 0

    @property
    def cell_width(self) -> float:
        return self.size / self.cols if self.cols else 0.0

    @property
    def cell_height(self) -> float:
        return self.size / self.rows if self.rows else 0.0

    @property
    def glyph_size(self) -> float:
        return min(self.cell_width, self.cell_height) * GLYPH_SCALE

    def glyph_counts(self) -> Dict[str, int]:
        counts = Counter(g.value for g in self.glyphs.ravel() if g is not None)
        return dict(counts)


def build_frame(
    image,
    params: KnitParams,
    size: int,
    palette: Palette = ACTIVE_PALETTE,
    policy: Optional[GlyphPolicy] = None,
) -> FrameContext:
    """Run sampling, edge detection, quantisation, prominence and glyph selection."""
    policy = policy or ProminenceGlyphPolicy()
    background = palette.background
    cols, rows = grid_dimensions(size, params.stitch_px)

    if cols == 0 or rows == 0:
        logger.debug("Grid resolves to %dx%d; background only", cols, rows)
        return FrameContext(
            size=size,
            cols=0,
            rows=0,
            background=background,
            samples=np.zeros((0, 0, 4)),
            edges=np.zeros((0, 0), dtype=bool),
            colors=np.zeros((0, 0, 3)),
            drawable=np.zeros((0, 0), dtype=bool),
            prominent=None,
            glyphs=np.full((0, 0), None, dtype=object),
        )

    samples = sample_grid(image, cols, rows)
    edges = detect_edges(samples, cols, rows)
    cells = transform_cells(samples, params, palette)
    prominent = find_prominent_color(cells.colors, background)
    glyphs = policy.assign(cells.colors, cells.drawable, edges, prominent, background, params)

    logger.debug("Frame %dpx: %dx%d grid, policy=%s", size, cols, rows, policy.name)
    return FrameContext(
        size=size,
        cols=cols,
        rows=rows,
        background=background,
        samples=samples,
        edges=edges,
        colors=cells.colors,
        drawable=cells.drawable,
        prominent=prominent,
        glyphs=glyphs,
    )


def _grid_line_commands(frame: FrameContext) -> List[DrawCommand]:
    color = GRID_LINE_COLOR + (GRID_LINE_ALPHA,)
    size = frame.size
    commands = []
    for y in range(frame.rows + 1):
        py = round_half_up(y * frame.cell_height)
        commands.append(DrawCommand("line", ((0, py), (size, py)), color, width=GRID_LINE_WIDTH))
    for x in range(frame.cols + 1):
        px = round_half_up(x * frame.cell_width)
        commands.append(DrawCommand("line", ((px, 0), (px, size)), color, width=GRID_LINE_WIDTH))
    return commands


def plan_frame(frame: FrameContext, params: KnitParams) -> List[DrawCommand]:
    """Ordered draw commands: background, optional gridlines, then glyphs."""
    commands = [
        DrawCommand("rect", ((0, 0), (frame.size, frame.size)), to_rgb8(frame.background) + (1.0,))
    ]
    if frame.is_empty:
        return commands

    if params.show_grid_lines:
        commands.extend(_grid_line_commands(frame))

    glyph_size = frame.glyph_size
    for y in range(frame.rows):
        for x in range(frame.cols):
            glyph = frame.glyphs[y, x]
            if glyph is None:
                continue
            cx = (x + 0.5) * frame.cell_width
            cy = (y + 0.5) * frame.cell_height
            color = to_rgb8(frame.colors[y, x]) + (1.0,)
            commands.append(glyph_command(glyph, cx, cy, glyph_size, color))
    return commands


def render_frame(
    surface: Surface,
    image,
    params: KnitParams,
    size: int,
    palette: Palette = ACTIVE_PALETTE,
    policy: Optional[GlyphPolicy] = None,
) -> FrameContext:
    """Render one mosaic frame onto ``surface``.

    Identical inputs always give identical output; the edge override is
    keyed by ``params.seed``.

    Raises:
        SurfaceUnavailableError: If ``surface`` is missing.
    """
    if surface is None:
        raise SurfaceUnavailableError("No drawing surface supplied")

    frame = build_frame(image, params, size, palette, policy)
    commands = plan_frame(frame, params)
    surface.set_smoothing(False)
    for command in commands:
        command.apply(surface)
    return frame


def render_to_array(
    image,
    params: KnitParams,
    size: int,
    palette: Palette = ACTIVE_PALETTE,
    policy: Optional[GlyphPolicy] = None,
) -> Tuple[np.ndarray, FrameContext]:
    """Render onto a fresh ``CanvasSurface`` and return its RGB pixels."""
    surface = CanvasSurface(size)
    frame = render_frame(surface, image, params, size, palette, policy)
    return surface.to_array(), frame


def render_frames(
    frames: Iterable,
    params: KnitParams,
    size: int,
    palette: Palette = ACTIVE_PALETTE,
    policy: Optional[GlyphPolicy] = None,
) -> Iterator[np.ndarray]:
    """Render a frame sequence one frame at a time.

    Each frame is fully drawn before the next source frame is pulled, so
    consumers never see a partially rendered canvas.
    """
    for index, source in enumerate(frames):
        pixels, _ = render_to_array(source, params, size, palette, policy)
        logger.debug("Rendered frame %d", index)
        yield pixels
