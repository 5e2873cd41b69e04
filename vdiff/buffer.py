"""Raw RGBA pixel buffers and per-coordinate color lookup."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np


_CHANNELS = 4


@dataclass(frozen=True)
class Color:
    """An RGBA color with channels normalized to [0, 1]."""

    r: float
    g: float
    b: float
    a: float

    @classmethod
    def from_bytes(cls, r: int, g: int, b: int, a: int) -> Color:
        return cls(r / 255.0, g / 255.0, b / 255.0, a / 255.0)


@dataclass(frozen=True)
class PixelBuffer:
    """Immutable view over a row-major RGBA byte buffer.

    Args:
        width: Number of columns.
        height: Number of rows.
        data: ``width * height * 4`` bytes, 8 bits per channel.

    Raises:
        ValueError: If a dimension is negative or *data* has the wrong
            length.
    """

    width: int
    height: int
    data: bytes = field(repr=False)

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(
                f"Buffer dimensions must be non-negative, got {self.width}x{self.height}"
            )
        expected = self.width * self.height * _CHANNELS
        if len(self.data) != expected:
            raise ValueError(
                f"Expected {expected} bytes for a {self.width}x{self.height} "
                f"RGBA buffer, got {len(self.data)}"
            )
        # Normalize bytearray/memoryview input so the buffer stays immutable.
        object.__setattr__(self, "data", bytes(self.data))

    # ── constructors ─────────────────────────────────────────────────

    @classmethod
    def from_array(cls, array: np.ndarray) -> PixelBuffer:
        """Build a buffer from an ``(height, width, 4)`` uint8 array."""
        if array.ndim != 3 or array.shape[2] != _CHANNELS:
            raise ValueError(f"Expected an (h, w, 4) array, got shape {array.shape}")
        if array.dtype != np.uint8:
            raise ValueError(f"Expected uint8 pixels, got {array.dtype}")
        height, width = array.shape[:2]
        return cls(width, height, np.ascontiguousarray(array).tobytes())

    @classmethod
    def filled(
        cls, width: int, height: int, rgba: tuple[int, int, int, int]
    ) -> PixelBuffer:
        """Build a buffer where every pixel is *rgba*."""
        return cls(width, height, bytes(rgba) * (width * height))

    # ── access ───────────────────────────────────────────────────────

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def to_array(self) -> np.ndarray:
        """Return a read-only ``(height, width, 4)`` uint8 view of the pixels."""
        return np.frombuffer(self.data, dtype=np.uint8).reshape(
            self.height, self.width, _CHANNELS
        )

    def rgba_at(self, x: int, y: int) -> tuple[int, int, int, int]:
        """Return the raw byte channels at (*x*, *y*).

        Raises:
            IndexError: If the coordinate lies outside the buffer.
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(
                f"Pixel ({x}, {y}) out of range for {self.width}x{self.height} buffer"
            )
        offset = (y * self.width + x) * _CHANNELS
        r, g, b, a = self.data[offset:offset + _CHANNELS]
        return r, g, b, a

    def color_at(self, x: int, y: int) -> Color:
        """Return the normalized color at (*x*, *y*)."""
        return Color.from_bytes(*self.rgba_at(x, y))
