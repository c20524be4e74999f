"""Public interface for the knit grid mosaic renderer."""

from __future__ import annotations

from .cells import CellColors, transform_cells, transform_color
from .color import (
    apply_contrast,
    apply_dither,
    apply_palette_mix,
    apply_saturation,
    bayer4,
    clamp01,
    colors_match,
    luminance,
    nearest_palette_color,
    srgb_to_linear,
    to_rgb8,
)
from .config import (
    ACTIVE_PALETTE,
    DEFAULT_PARAMS,
    PRESETS,
    Glyph,
    KnitParams,
    Palette,
    get_preset,
)
from .edges import detect_edges, gradient_magnitude
from .glyphs import (
    GlyphPolicy,
    LuminanceGlyphPolicy,
    ProminenceGlyphPolicy,
    calculate_thresholds,
    edge_roll,
    get_policy,
    pick_glyph,
    select_glyph,
)
from .prominence import count_colors, find_prominent_color
from .render import (
    FrameContext,
    build_frame,
    grid_dimensions,
    plan_frame,
    render_frame,
    render_frames,
    render_to_array,
)
from .sampler import sample_grid
from .settings import ParamsStore
from .surface import CanvasSurface, DrawCommand, RecordingSurface, Surface, SurfaceUnavailableError

__all__ = [
    "ACTIVE_PALETTE",
    "CanvasSurface",
    "CellColors",
    "DEFAULT_PARAMS",
    "DrawCommand",
    "FrameContext",
    "Glyph",
    "GlyphPolicy",
    "KnitParams",
    "LuminanceGlyphPolicy",
    "PRESETS",
    "Palette",
    "ParamsStore",
    "ProminenceGlyphPolicy",
    "RecordingSurface",
    "Surface",
    "SurfaceUnavailableError",
    "apply_contrast",
    "apply_dither",
    "apply_palette_mix",
    "apply_saturation",
    "bayer4",
    "build_frame",
    "calculate_thresholds",
    "clamp01",
    "colors_match",
    "count_colors",
    "detect_edges",
    "edge_roll",
    "find_prominent_color",
    "get_policy",
    "get_preset",
    "gradient_magnitude",
    "grid_dimensions",
    "luminance",
    "nearest_palette_color",
    "pick_glyph",
    "plan_frame",
    "render_frame",
    "render_frames",
    "render_to_array",
    "sample_grid",
    "select_glyph",
    "srgb_to_linear",
    "to_rgb8",
    "transform_cells",
    "transform_color",
]
