"""Color-distance metric used to compare individual pixels.

The distance is an ad-hoc Euclidean measure over normalized RGBA channels,
rescaled by the 8-bit channel range before the square root so that
``max_delta`` thresholds read roughly in byte-value units.  Alpha is weighted
the same as the color channels.  It is deliberately not a perceptual color
space; default thresholds are calibrated against exactly this formula.
"""

from __future__ import annotations

import math

import numpy as np

from vdiff.buffer import Color


_CHANNEL_RANGE = 255.0


def color_distance(a: Color, b: Color) -> float:
    """Return the color delta between *a* and *b*."""
    dr, dg, db, da = a.r - b.r, a.g - b.g, a.b - b.b, a.a - b.a
    total = dr * dr + dg * dg + db * db + da * da
    return math.sqrt(total * _CHANNEL_RANGE)


def normalize(pixels: np.ndarray) -> np.ndarray:
    """Convert uint8 RGBA pixels to float64 channels in [0, 1]."""
    return pixels.astype(np.float64) / _CHANNEL_RANGE


def distance_map(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Element-wise :func:`color_distance` over normalized ``(..., 4)`` arrays.

    *b* may be a single color broadcast against *a*.  Channels are summed in
    r, g, b, a order so results match the scalar form exactly.
    """
    diff = a - b
    sq = diff * diff
    total = sq[..., 0] + sq[..., 1] + sq[..., 2] + sq[..., 3]
    return np.sqrt(total * _CHANNEL_RANGE)
