"""Pixel comparison engine: per-pixel classification and result aggregation."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from vdiff.buffer import PixelBuffer
from vdiff.metric import color_distance, distance_map, normalize

log = logging.getLogger(__name__)

PASS_RGBA = (0, 255, 0, 255)
FAIL_RGBA = (255, 0, 0, 255)


class InvalidInputError(ValueError):
    """The two buffers cannot be compared (e.g. their dimensions differ)."""


# ---------------------------------------------------------------------------
# Options and result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CompareOptions:
    """Tolerances for a comparison.

    Attributes:
        max_delta: A pixel passes outright when its color delta is below
            this value.  Also bounds the delta drift allowed by the offset
            search.
        max_difference: The comparison passes when the number of failing
            pixels is at most this value.
        max_offset: Radius in pixels of the neighborhood searched for shifted
            content.  0 disables the search.
        render_composition: Build the green/red composition buffer.
    """

    max_delta: float = 1.0
    max_difference: float = 0.01
    max_offset: int = 0
    render_composition: bool = False

    def __post_init__(self) -> None:
        for name in ("max_delta", "max_difference", "max_offset"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")


@dataclass(frozen=True)
class CompareResult:
    """Outcome of a comparison.

    Attributes:
        pixel_difference: Number of pixels that failed.
        percentage_difference: Failing pixels as a fraction of all pixels
            (0.0 - 1.0, not scaled to 100).
        passed: True when ``pixel_difference <= max_difference``.
        composition: Green (pass) / red (fail) overlay, when requested.
    """

    pixel_difference: int
    percentage_difference: float
    passed: bool
    composition: PixelBuffer | None = None


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def _neighborhood(
    width: int, height: int, x: int, y: int, offset: int
) -> tuple[int, int, int, int]:
    """Inclusive (x0, x1, y0, y1) bounds of the search square, clamped to the buffer."""
    return (
        max(0, x - offset),
        min(width - 1, x + offset),
        max(0, y - offset),
        min(height - 1, y + offset),
    )


def classify_pixel(
    buf_a: PixelBuffer,
    buf_b: PixelBuffer,
    x: int,
    y: int,
    options: CompareOptions,
) -> bool:
    """Return True when the pixel at (*x*, *y*) passes.

    A pixel passes when its color delta is below ``max_delta``.  Failing
    that, and when ``max_offset > 0``, neighbors within ``max_offset`` are
    searched for evidence that the content merely shifted: a neighbor in A
    that is distinctly different from the origin pixel (delta above
    ``max_delta``), whose counterpart in B differs from the origin by about
    the same amount.  Neighbors on the origin's row or column are never
    considered.
    """
    color_a = buf_a.color_at(x, y)
    color_b = buf_b.color_at(x, y)

    if color_distance(color_a, color_b) < options.max_delta:
        return True
    if options.max_offset == 0:
        return False

    x0, x1, y0, y1 = _neighborhood(buf_a.width, buf_a.height, x, y, options.max_offset)
    for nx in range(x0, x1 + 1):
        for ny in range(y0, y1 + 1):
            if nx == x or ny == y:
                continue
            delta_na = color_distance(color_a, buf_a.color_at(nx, ny))
            delta_nb = color_distance(color_a, buf_b.color_at(nx, ny))
            if abs(delta_nb - delta_na) < options.max_delta and delta_na > options.max_delta:
                return True
    return False


def _matches_shifted_neighbor(
    norm_a: np.ndarray,
    norm_b: np.ndarray,
    x: int,
    y: int,
    options: CompareOptions,
) -> bool:
    """Array form of the neighborhood search in :func:`classify_pixel`."""
    height, width = norm_a.shape[:2]
    x0, x1, y0, y1 = _neighborhood(width, height, x, y, options.max_offset)
    origin = norm_a[y, x]

    delta_na = distance_map(norm_a[y0:y1 + 1, x0:x1 + 1], origin)
    delta_nb = distance_map(norm_b[y0:y1 + 1, x0:x1 + 1], origin)

    eligible = np.ones(delta_na.shape, dtype=bool)
    eligible[y - y0, :] = False
    eligible[:, x - x0] = False

    hits = (
        eligible
        & (np.abs(delta_nb - delta_na) < options.max_delta)
        & (delta_na > options.max_delta)
    )
    return bool(hits.any())


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------


def compare(
    buf_a: PixelBuffer,
    buf_b: PixelBuffer,
    options: CompareOptions | None = None,
) -> CompareResult:
    """Compare two equally sized buffers pixel by pixel.

    Args:
        buf_a: The reference buffer.
        buf_b: The candidate buffer.
        options: Tolerances; defaults to :class:`CompareOptions()`.

    Returns:
        A :class:`CompareResult`.

    Raises:
        InvalidInputError: If the buffers differ in width or height.
    """
    if options is None:
        options = CompareOptions()
    if buf_a.size != buf_b.size:
        raise InvalidInputError(
            f"Cannot compare a {buf_a.width}x{buf_a.height} buffer "
            f"with a {buf_b.width}x{buf_b.height} buffer"
        )

    width, height = buf_a.size
    total = width * height

    # The scan covers x in [0, width] and y in [0, height]; coordinates on the
    # trailing row and column lie outside the buffer and are treated as
    # absent, so only in-range pixels are classified and drawn.
    norm_a = normalize(buf_a.to_array())
    norm_b = normalize(buf_b.to_array())
    passes = distance_map(norm_a, norm_b) < options.max_delta

    if options.max_offset > 0:
        ys, xs = np.nonzero(~passes)
        log.debug("Searching %d-pixel neighborhoods for %d pixels", options.max_offset, len(xs))
        for y, x in zip(ys.tolist(), xs.tolist()):
            passes[y, x] = _matches_shifted_neighbor(norm_a, norm_b, x, y, options)

    pixel_difference = int(total - np.count_nonzero(passes))

    if total == 0:
        percentage_difference = 0.0
        passed = True
    else:
        percentage_difference = pixel_difference / total
        # Compares a pixel count against max_difference as-is.
        passed = float(pixel_difference) <= options.max_difference

    composition = None
    if options.render_composition:
        pixels = np.empty((height, width, 4), dtype=np.uint8)
        pixels[...] = FAIL_RGBA
        pixels[passes] = PASS_RGBA
        composition = PixelBuffer.from_array(pixels)

    log.debug(
        "Compared %dx%d buffers: %d differing pixels (%.4f) → %s",
        width,
        height,
        pixel_difference,
        percentage_difference,
        "pass" if passed else "fail",
    )
    return CompareResult(
        pixel_difference=pixel_difference,
        percentage_difference=percentage_difference,
        passed=passed,
        composition=composition,
    )
