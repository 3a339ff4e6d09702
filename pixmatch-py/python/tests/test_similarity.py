"""Tests for pixel closeness and image similarity."""

import numpy as np
import pytest
from PIL import Image

from conftest import random_matrix, solid

from pixmatch import InvalidDimensionError, PixelMatrix, closeness, similarity


def expected_similarity(c1, c2):
    """Closeness of two uniform images, computed by hand from the gray values."""
    def lum(c):
        r, g, b, a = c
        v = (r * 19595 + g * 38469 + b * 7472) >> 16
        return (v, v, v, a)

    diff = sum(abs(a - b) for a, b in zip(lum(c1), lum(c2)))
    return 1000 - diff * 1000 // (255 * 4)


class TestCloseness:
    """Per-pixel closeness score."""

    def test_identical(self):
        assert closeness((1, 2, 3, 4), (1, 2, 3, 4)) == 1000

    def test_opposite(self):
        assert closeness((0, 0, 0, 0), (255, 255, 255, 255)) == 0

    def test_formula(self):
        # diff = 10 + 0 + 5 + 0 = 15 -> 1000 - 15000 // 1020
        assert closeness((10, 20, 30, 40), (20, 20, 25, 40)) == 1000 - 14

    def test_symmetric(self):
        assert closeness((9, 200, 3, 0), (90, 1, 30, 255)) == closeness((90, 1, 30, 255), (9, 200, 3, 0))


class TestSimilarity:
    """Whole-image similarity."""

    def test_identical_images(self, rng):
        m = random_matrix(rng, 12, 9)
        assert similarity(m, m) == 1000
        assert similarity(m, m.clone()) == 1000

    def test_does_not_mutate_inputs(self, colorful):
        before = colorful.pixels.copy()
        similarity(colorful, colorful)
        assert np.array_equal(colorful.pixels, before)

    def test_symmetric(self, rng):
        a = random_matrix(rng, 10, 7)
        b = random_matrix(rng, 6, 11)
        assert similarity(a, b) == similarity(b, a)

    def test_two_by_two_scenario(self):
        a = solid(2, 2, (10, 20, 30, 255))
        b = solid(2, 2, (255, 235, 225, 255))
        assert similarity(a, solid(2, 2, (10, 20, 30, 255))) == 1000

        score = similarity(a, b)
        assert score < 1000
        assert score == expected_similarity((10, 20, 30, 255), (255, 235, 225, 255))

    def test_monotonic_in_single_channel_perturbation(self):
        base = solid(1, 1, (100, 0, 0, 255))
        scores = [similarity(base, solid(1, 1, (100, d, 0, 255))) for d in range(256)]
        assert scores[0] == 1000
        assert all(later <= earlier for earlier, later in zip(scores, scores[1:]))
        assert scores[-1] < scores[0]

    def test_compares_grayscale(self):
        # Different colors with the same luminance score as identical.
        a = solid(2, 2, (255, 0, 0, 255))
        b = solid(2, 2, (76, 76, 76, 255))
        assert similarity(a, b) == 1000

    def test_alpha_counts(self):
        a = solid(1, 1, (50, 50, 50, 255))
        b = solid(1, 1, (50, 50, 50, 0))
        assert similarity(a, b) == 1000 - 255 * 1000 // 1020

    def test_clips_to_overlap(self):
        a = solid(4, 4, (10, 10, 10, 255))
        pixels = np.zeros((2, 6, 4), dtype=np.uint8)
        pixels[...] = (10, 10, 10, 255)
        pixels[:, 4:] = (250, 0, 0, 0)  # outside a's width
        b = PixelMatrix(pixels)
        assert similarity(a, b) == 1000

    def test_floored_mean(self):
        a = PixelMatrix(np.array([[[0, 0, 0, 255], [0, 0, 0, 255]]], dtype=np.uint8))
        b = PixelMatrix(np.array([[[0, 0, 0, 255], [1, 1, 1, 255]]], dtype=np.uint8))
        # closeness: 1000 and 1000 - 3000 // 1020 = 998 -> mean 999
        assert similarity(a, b) == 999

    def test_accepts_pil_and_arrays(self):
        img = Image.new("RGB", (3, 3), (40, 80, 120))
        arr = np.zeros((3, 3, 3), dtype=np.uint8)
        arr[...] = (40, 80, 120)
        assert similarity(img, arr) == 1000

    def test_zero_size_rejected(self):
        with pytest.raises(InvalidDimensionError):
            similarity(PixelMatrix.new(0, 3), solid(2, 2, (0, 0, 0, 0)))
