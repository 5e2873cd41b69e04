"""Tests for vdiff.metric — the color-distance metric."""

from __future__ import annotations

import math

import numpy as np
import pytest

from vdiff.buffer import Color
from vdiff.metric import color_distance, distance_map, normalize


WHITE = Color(1.0, 1.0, 1.0, 1.0)
BLACK = Color(0.0, 0.0, 0.0, 1.0)
CLEAR = Color(0.0, 0.0, 0.0, 0.0)


class TestColorDistance:
    """Tests for color_distance()."""

    def test_identical_colors(self):
        assert color_distance(WHITE, WHITE) == 0.0

    def test_white_black(self):
        """Three channels fully apart: sqrt(3 * 255)."""
        assert color_distance(WHITE, BLACK) == pytest.approx(math.sqrt(3 * 255))

    def test_alpha_weighted_like_color(self):
        assert color_distance(BLACK, CLEAR) == pytest.approx(math.sqrt(255))

    def test_symmetric(self):
        rng = np.random.default_rng(7)
        for _ in range(50):
            a = Color.from_bytes(*rng.integers(0, 256, 4).tolist())
            b = Color.from_bytes(*rng.integers(0, 256, 4).tolist())
            assert color_distance(a, b) == color_distance(b, a)

    def test_single_byte_steps(self):
        """A 15-step channel change stays below 1.0, a 16-step one does not."""
        base = Color.from_bytes(100, 100, 100, 255)
        assert color_distance(base, Color.from_bytes(115, 100, 100, 255)) < 1.0
        assert color_distance(base, Color.from_bytes(116, 100, 100, 255)) > 1.0


class TestDistanceMap:
    """Tests for distance_map()."""

    def test_matches_scalar_form(self):
        """Array and scalar forms agree exactly for every pixel."""
        rng = np.random.default_rng(3)
        a = rng.integers(0, 256, size=(5, 6, 4), dtype=np.uint8)
        b = rng.integers(0, 256, size=(5, 6, 4), dtype=np.uint8)

        deltas = distance_map(normalize(a), normalize(b))

        assert deltas.shape == (5, 6)
        for y in range(5):
            for x in range(6):
                expected = color_distance(
                    Color.from_bytes(*a[y, x].tolist()),
                    Color.from_bytes(*b[y, x].tolist()),
                )
                assert deltas[y, x] == expected

    def test_broadcasts_single_color(self):
        pixels = normalize(np.full((2, 2, 4), 255, dtype=np.uint8))
        origin = normalize(np.array([0, 0, 0, 255], dtype=np.uint8))

        deltas = distance_map(pixels, origin)

        np.testing.assert_allclose(deltas, math.sqrt(3 * 255))
