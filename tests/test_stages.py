"""Tests for sampling, edge detection, the cell pipeline and prominence."""

from __future__ import annotations

import numpy as np
import pytest
from PIL import Image

from knit_grid.cells import transform_cells, transform_color
from knit_grid.color import apply_contrast, apply_dither, nearest_palette_color
from knit_grid.config import ACTIVE_PALETTE, DEFAULT_PARAMS, Palette
from knit_grid.edges import detect_edges, gradient_magnitude
from knit_grid.prominence import count_colors, find_prominent_color
from knit_grid.sampler import opaque_mask, sample_grid, to_rgba_array

BLUE = ACTIVE_PALETTE.colors[0]
NAVY = ACTIVE_PALETTE.colors[1]
YELLOW = ACTIVE_PALETTE.colors[2]

MONO = Palette.from_hex(["000000", "ffffff"])
BLACK = np.array([0.0, 0.0, 0.0])
WHITE = np.array([1.0, 1.0, 1.0])


def _make_flat_image(size: int = 40, rgb=(255, 242, 2), alpha: int = 255) -> np.ndarray:
    image = np.zeros((size, size, 4), dtype=np.uint8)
    image[..., :3] = rgb
    image[..., 3] = alpha
    return image


def _make_split_grid(rows: int = 8, cols: int = 8) -> np.ndarray:
    """Black left half, white right half, fully opaque."""
    grid = np.ones((rows, cols, 4), dtype=np.float64)
    grid[:, : cols // 2, :3] = 0.0
    return grid


class TestSampler:
    def test_non_positive_grid_is_empty(self):
        image = _make_flat_image()
        assert sample_grid(image, 0, 5).shape == (0, 0, 4)
        assert sample_grid(image, 3, -1).shape == (0, 0, 4)

    def test_flat_image_samples_flat(self):
        samples = sample_grid(_make_flat_image(), 2, 2)
        assert samples.shape == (2, 2, 4)
        np.testing.assert_allclose(samples[..., :3], np.broadcast_to(YELLOW, (2, 2, 3)))
        np.testing.assert_allclose(samples[..., 3], 1.0)

    def test_accepts_pil_and_rgb_input(self):
        pil = Image.fromarray(_make_flat_image()[..., :3])
        samples = sample_grid(pil, 4, 4)
        np.testing.assert_allclose(samples[..., 3], 1.0)

    def test_empty_source_is_rejected(self):
        with pytest.raises(ValueError):
            to_rgba_array(np.zeros((0, 4, 3), dtype=np.uint8))
        with pytest.raises(ValueError):
            to_rgba_array(np.zeros((4, 4, 2), dtype=np.uint8))

    def test_transparent_cells_are_not_opaque(self):
        samples = sample_grid(_make_flat_image(alpha=0), 2, 2)
        assert not opaque_mask(samples).any()

    @pytest.mark.parametrize("cells", [2, 4])
    def test_cells_sample_their_centre_pixel(self, cells):
        image = _make_flat_image()
        image[0, :, :3] = 0
        image[:, 0, :3] = 0
        image[-1, :, :3] = 0
        image[:, -1, :3] = 0
        samples = sample_grid(image, cells, cells)
        np.testing.assert_allclose(samples[..., :3], np.broadcast_to(YELLOW, (cells, cells, 3)))


class TestEdges:
    def test_flat_grid_has_no_edges(self):
        samples = sample_grid(_make_flat_image(), 6, 6)
        assert not detect_edges(samples).any()

    def test_step_is_flagged_on_both_sides(self):
        edges = detect_edges(_make_split_grid(), 8, 8)
        assert edges[:, 3].all() and edges[:, 4].all()
        assert not edges[:, 0].any() and not edges[:, 7].any()

    def test_borders_clamp_instead_of_wrapping(self):
        # A wrap-around neighbour would see the white column from the far side
        magnitude = gradient_magnitude(_make_split_grid()[..., 0])
        assert magnitude[:, 0].max() == 0.0

    def test_dimension_mismatch_raises(self):
        with pytest.raises(ValueError):
            detect_edges(_make_split_grid(), 7, 8)

    def test_empty_grid_gives_empty_map(self):
        assert detect_edges(np.zeros((0, 0, 4))).shape == (0, 0)


class TestCellPipeline:
    def test_flat_yellow_stays_yellow(self):
        samples = sample_grid(_make_flat_image(), 5, 5)
        cells = transform_cells(samples, DEFAULT_PARAMS, ACTIVE_PALETTE)
        assert cells.shape == (5, 5)
        assert cells.drawable.all()
        np.testing.assert_allclose(cells.colors, np.broadcast_to(YELLOW, (5, 5, 3)))

    def test_transparent_cells_take_background(self):
        samples = sample_grid(_make_flat_image(alpha=0), 3, 3)
        cells = transform_cells(samples, DEFAULT_PARAMS, ACTIVE_PALETTE)
        assert not cells.drawable.any()
        np.testing.assert_allclose(cells.colors, np.broadcast_to(BLUE, (3, 3, 3)))

    def test_grid_matches_single_cell_pipeline(self):
        rng = np.random.RandomState(11)
        samples = np.concatenate([rng.uniform(size=(4, 5, 3)), np.ones((4, 5, 1))], axis=2)
        params = DEFAULT_PARAMS.replace(dither=0.8, contrast=1.3, saturation=1.6)
        cells = transform_cells(samples, params, ACTIVE_PALETTE)
        for y in range(4):
            for x in range(5):
                expected = transform_color(samples[y, x, :3], params, ACTIVE_PALETTE, x, y)
                np.testing.assert_array_equal(cells.colors[y, x], expected)

    def test_dither_pushes_borderline_colour_across_palette_boundary(self):
        # Black/white split at linear 0.5, i.e. sRGB ~0.735
        grey = [0.74, 0.74, 0.74]
        params = DEFAULT_PARAMS.replace(dither=1.0)

        # bayer 0 at (0, 0) -> offset -0.05; bayer 15/16 at (0, 3) -> offset +0.044
        np.testing.assert_array_equal(transform_color(grey, params, MONO, 0, 0), BLACK)
        np.testing.assert_array_equal(transform_color(grey, params, MONO, 0, 3), WHITE)

        flat = params.replace(dither=0.0)
        np.testing.assert_array_equal(transform_color(grey, flat, MONO, 0, 0), WHITE)
        np.testing.assert_array_equal(transform_color(grey, flat, MONO, 0, 3), WHITE)

    def test_dither_runs_after_contrast(self):
        grey = [0.7, 0.7, 0.7]
        params = DEFAULT_PARAMS.replace(contrast=1.5, dither=1.0)

        # contrast first: 0.8 - 0.05 = 0.75 -> white
        np.testing.assert_array_equal(transform_color(grey, params, MONO, 0, 0), WHITE)

        # the reverse order would amplify the dither offset: (0.65 - 0.5) * 1.5 + 0.5 = 0.725
        reversed_order = apply_contrast(apply_dither(grey, 1.0, 0, 0), 1.5)
        np.testing.assert_array_equal(nearest_palette_color(reversed_order, MONO), BLACK)


class TestProminence:
    def test_majority_colour_wins(self):
        colors = np.array([YELLOW] * 10 + [NAVY] * 3 + [BLUE] * 20).reshape(3, 11, 3)
        prominent = find_prominent_color(colors, BLUE)
        np.testing.assert_allclose(prominent, YELLOW, atol=1e-9)

    def test_background_is_never_counted(self):
        colors = np.array([BLUE] * 9).reshape(3, 3, 3)
        assert count_colors(colors, BLUE) == {}
        assert find_prominent_color(colors, BLUE) is None

    def test_tie_goes_to_first_seen(self):
        colors = np.array([NAVY, YELLOW, YELLOW, NAVY]).reshape(2, 2, 3)
        prominent = find_prominent_color(colors, BLUE)
        np.testing.assert_allclose(prominent, NAVY, atol=1e-9)

    def test_counts_use_8bit_keys(self):
        colors = np.array([YELLOW, YELLOW, NAVY]).reshape(1, 3, 3)
        assert count_colors(colors, BLUE) == {(255, 242, 2): 2, (0, 54, 127): 1}
