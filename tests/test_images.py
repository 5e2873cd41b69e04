"""Tests for vdiff.images — loading, saving and comparing image files."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import numpy as np
import pytest
from skimage.io import imread, imsave

from vdiff.buffer import PixelBuffer
from vdiff.compare import FAIL_RGBA, PASS_RGBA, CompareOptions
from vdiff.images import compare_files, load_buffer, save_composition


# ── helpers ──────────────────────────────────────────────────────────


def _solid_image(tmp_path: Path, name: str, color: tuple[int, ...]) -> Path:
    """Create a 16x16 solid-color image (RGB or RGBA) and return its path."""
    img = np.full((16, 16, len(color)), color, dtype=np.uint8)
    path = tmp_path / name
    imsave(str(path), img, check_contrast=False)
    return path


# ── load_buffer ─────────────────────────────────────────────────────


class TestLoadBuffer:
    """Tests for load_buffer()."""

    def test_rgb_gets_opaque_alpha(self, tmp_path: Path):
        path = _solid_image(tmp_path, "rgb.png", (120, 200, 50))

        buf = load_buffer(path)

        assert buf.size == (16, 16)
        assert buf.rgba_at(3, 7) == (120, 200, 50, 255)

    def test_rgba_kept(self, tmp_path: Path):
        path = _solid_image(tmp_path, "rgba.png", (10, 20, 30, 128))
        assert load_buffer(path).rgba_at(0, 0) == (10, 20, 30, 128)

    def test_grayscale_expanded(self, tmp_path: Path):
        path = tmp_path / "gray.png"
        imsave(str(path), np.full((8, 4), 77, dtype=np.uint8), check_contrast=False)

        buf = load_buffer(path)

        assert buf.size == (4, 8)
        assert buf.rgba_at(1, 1) == (77, 77, 77, 255)

    def test_grayscale_alpha_expanded(self, tmp_path: Path):
        """Two-channel (gray, alpha) arrays keep their alpha."""
        path = tmp_path / "la.png"
        path.touch()
        decoded = np.zeros((3, 2, 2), dtype=np.uint8)
        decoded[..., 0] = 77
        decoded[..., 1] = 200

        with patch("vdiff.images.imread", return_value=decoded):
            buf = load_buffer(path)

        assert buf.size == (2, 3)
        assert buf.rgba_at(1, 2) == (77, 77, 77, 200)

    def test_unsupported_channel_count(self, tmp_path: Path):
        path = tmp_path / "odd.png"
        path.touch()

        with patch("vdiff.images.imread", return_value=np.zeros((2, 2, 5), dtype=np.uint8)):
            with pytest.raises(ValueError, match="Unsupported image shape"):
                load_buffer(path)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError, match="missing.png"):
            load_buffer(tmp_path / "missing.png")


# ── save_composition ────────────────────────────────────────────────


class TestSaveComposition:
    """Tests for save_composition()."""

    def test_creates_parent_dirs(self, tmp_path: Path):
        buf = PixelBuffer.filled(4, 4, PASS_RGBA)
        out = tmp_path / "nested" / "dir" / "comp.png"

        save_composition(buf, out)

        assert out.exists()
        np.testing.assert_array_equal(imread(str(out)), buf.to_array())


# ── compare_files ───────────────────────────────────────────────────


class TestCompareFiles:
    """Tests for compare_files()."""

    def test_identical_images(self, tmp_path: Path):
        a = _solid_image(tmp_path, "a.png", (120, 200, 50))
        b = _solid_image(tmp_path, "b.png", (120, 200, 50))

        result = compare_files(a, b)

        assert result.pixel_difference == 0
        assert result.passed is True
        assert result.composition is None

    def test_different_images(self, tmp_path: Path):
        a = _solid_image(tmp_path, "a.png", (0, 0, 0))
        b = _solid_image(tmp_path, "b.png", (255, 255, 255))

        result = compare_files(a, b)

        assert result.pixel_difference == 256
        assert result.percentage_difference == 1.0
        assert result.passed is False

    def test_writes_composition(self, tmp_path: Path):
        """A composition path forces rendering and is written red on failure."""
        a = _solid_image(tmp_path, "a.png", (0, 0, 0))
        b = _solid_image(tmp_path, "b.png", (255, 255, 255))
        out = tmp_path / "diffs" / "ab.png"

        result = compare_files(a, b, CompareOptions(), composition_path=out)

        assert result.composition is not None
        written = imread(str(out))
        assert written.shape == (16, 16, 4)
        assert np.all(written == FAIL_RGBA)

    def test_size_mismatch(self, tmp_path: Path):
        """Images are never resized; differing sizes are rejected."""
        a = _solid_image(tmp_path, "a.png", (0, 0, 0))
        b = tmp_path / "b.png"
        imsave(str(b), np.zeros((8, 8, 3), dtype=np.uint8), check_contrast=False)

        with pytest.raises(ValueError, match="Cannot compare"):
            compare_files(a, b)
