"""Tests for glyph selection and the glyph policies."""

from __future__ import annotations

import numpy as np
import pytest

from knit_grid.config import ACTIVE_PALETTE, DEFAULT_PARAMS, Glyph
from knit_grid.glyphs import (
    EDGE_OVERRIDE_WEIGHT,
    LuminanceGlyphPolicy,
    ProminenceGlyphPolicy,
    edge_roll,
    get_policy,
    pick_glyph,
    select_glyph,
)

BLUE = np.array(ACTIVE_PALETTE.colors[0])
NAVY = np.array(ACTIVE_PALETTE.colors[1])
YELLOW = np.array(ACTIVE_PALETTE.colors[2])


def _make_palette_grid(rows: int = 9, cols: int = 12, seed: int = 7):
    """Random grid of palette colours plus a random edge map."""
    rng = np.random.RandomState(seed)
    indices = rng.randint(0, len(ACTIVE_PALETTE), (rows, cols))
    colors = ACTIVE_PALETTE.as_array()[indices]
    edges = rng.uniform(size=(rows, cols)) < 0.5
    return colors, edges


class TestSelectGlyph:
    def test_background_draws_nothing(self):
        assert select_glyph(BLUE, False, 0, 0, YELLOW, BLUE, 0.2) is None
        assert select_glyph(BLUE, True, 3, 1, None, BLUE, 1.0) is None

    def test_prominent_colour_alternates_by_parity(self):
        assert select_glyph(YELLOW, False, 0, 0, YELLOW, BLUE, 0.0) == Glyph.CIRCLE
        assert select_glyph(YELLOW, False, 1, 0, YELLOW, BLUE, 0.0) == Glyph.SQUARE
        assert select_glyph(YELLOW, False, 1, 1, YELLOW, BLUE, 0.0) == Glyph.CIRCLE

    def test_other_colours_are_diamonds(self):
        assert select_glyph(NAVY, False, 0, 0, YELLOW, BLUE, 0.0) == Glyph.DIAMOND
        assert select_glyph(NAVY, False, 0, 0, None, BLUE, 0.0) == Glyph.DIAMOND

    def test_edges_ignored_without_crispness(self):
        for x in range(16):
            expected = Glyph.CIRCLE if x % 2 == 0 else Glyph.SQUARE
            assert select_glyph(YELLOW, True, x, 0, YELLOW, BLUE, 0.0) == expected

    def test_edge_override_follows_roll(self):
        forced = 0
        for x in range(64):
            glyph = select_glyph(YELLOW, True, x, 2, YELLOW, BLUE, 1.0, seed=5)
            if edge_roll(x, 2, 5) < EDGE_OVERRIDE_WEIGHT:
                assert glyph == Glyph.DIAMOND
                forced += 1
            else:
                assert glyph in (Glyph.CIRCLE, Glyph.SQUARE)
        assert 0 < forced < 64


class TestEdgeRoll:
    def test_deterministic_and_in_range(self):
        ys, xs = np.mgrid[0:20, 0:20]
        first = edge_roll(xs, ys, 9)
        second = edge_roll(xs, ys, 9)
        np.testing.assert_array_equal(first, second)
        assert first.min() >= 0.0 and first.max() < 1.0

    def test_scalar_matches_grid(self):
        ys, xs = np.mgrid[0:4, 0:4]
        grid = edge_roll(xs, ys, 1)
        assert isinstance(edge_roll(2, 3, 1), float)
        assert edge_roll(2, 3, 1) == grid[3, 2]

    def test_seed_changes_pattern(self):
        ys, xs = np.mgrid[0:10, 0:10]
        assert not np.array_equal(edge_roll(xs, ys, 0), edge_roll(xs, ys, 1))


class TestPickGlyph:
    @pytest.mark.parametrize(
        "luma, expected",
        [(0.1, Glyph.DIAMOND), (0.3, Glyph.SQUARE), (0.9, Glyph.CIRCLE)],
    )
    def test_thresholds(self, luma, expected):
        assert pick_glyph(luma, 0.2, 0.5, 0.0, False) == expected

    def test_edge_bias_darkens(self):
        assert pick_glyph(0.25, 0.2, 0.5, 1.0, False) == Glyph.SQUARE
        assert pick_glyph(0.25, 0.2, 0.5, 1.0, True) == Glyph.DIAMOND


class TestPolicies:
    def test_prominence_policy_matches_per_cell_selection(self):
        colors, edges = _make_palette_grid()
        params = DEFAULT_PARAMS.replace(edge_crispness=1.0, seed=3)
        drawable = np.ones(edges.shape, dtype=bool)
        prominent = YELLOW

        glyphs = ProminenceGlyphPolicy().assign(colors, drawable, edges, prominent, BLUE, params)
        for y in range(edges.shape[0]):
            for x in range(edges.shape[1]):
                expected = select_glyph(
                    colors[y, x], bool(edges[y, x]), x, y, prominent, BLUE, 1.0, seed=3
                )
                assert glyphs[y, x] == expected

    def test_non_drawable_cells_stay_empty(self):
        colors = np.broadcast_to(YELLOW, (2, 2, 3)).copy()
        drawable = np.array([[True, False], [False, True]])
        edges = np.zeros((2, 2), dtype=bool)
        glyphs = ProminenceGlyphPolicy().assign(colors, drawable, edges, YELLOW, BLUE, DEFAULT_PARAMS)
        assert glyphs[0, 1] is None and glyphs[1, 0] is None
        assert glyphs[0, 0] == Glyph.CIRCLE and glyphs[1, 1] == Glyph.CIRCLE

    def test_luminance_policy(self):
        colors = np.stack([BLUE, NAVY, YELLOW]).reshape(1, 3, 3)
        drawable = np.ones((1, 3), dtype=bool)
        edges = np.zeros((1, 3), dtype=bool)
        glyphs = LuminanceGlyphPolicy().assign(colors, drawable, edges, None, BLUE, DEFAULT_PARAMS)
        assert list(glyphs[0]) == [None, Glyph.DIAMOND, Glyph.CIRCLE]

    def test_empty_grid(self):
        glyphs = ProminenceGlyphPolicy().assign(
            np.zeros((0, 0, 3)), np.zeros((0, 0), dtype=bool), np.zeros((0, 0), dtype=bool),
            None, BLUE, DEFAULT_PARAMS,
        )
        assert glyphs.shape == (0, 0)

    def test_get_policy(self):
        assert isinstance(get_policy("prominence"), ProminenceGlyphPolicy)
        assert isinstance(get_policy("luminance"), LuminanceGlyphPolicy)
        with pytest.raises(ValueError):
            get_policy("sparkle")
