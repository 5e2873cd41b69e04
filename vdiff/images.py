"""Image file I/O around the comparison engine."""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path

import numpy as np
from skimage.io import imread, imsave
from skimage.util import img_as_ubyte

from vdiff.buffer import PixelBuffer
from vdiff.compare import CompareOptions, CompareResult, compare

log = logging.getLogger(__name__)


def _to_rgba(img: np.ndarray) -> np.ndarray:
    """Shape a decoded image as uint8 RGBA.

    Pixels are taken as decoded.  Some imageio/Pillow versions expand
    grayscale+alpha PNGs to four channels with the alpha copied into every
    channel; such images load without error but with those pixel values.
    """
    if img.dtype != np.uint8:
        img = img_as_ubyte(img)
    if img.ndim == 2:
        # Grayscale → RGB
        img = np.stack([img, img, img], axis=-1)
    elif img.ndim == 3 and img.shape[2] == 2:
        # Grayscale + alpha → RGBA
        gray, alpha = img[..., :1], img[..., 1:]
        img = np.concatenate([gray, gray, gray, alpha], axis=-1)
    if img.ndim != 3 or img.shape[2] not in (3, 4):
        raise ValueError(f"Unsupported image shape {img.shape}")
    if img.shape[2] == 3:
        # RGB → RGBA with opaque alpha
        alpha = np.full(img.shape[:2] + (1,), 255, dtype=np.uint8)
        img = np.concatenate([img, alpha], axis=-1)
    return img


def load_buffer(path: Path) -> PixelBuffer:
    """Decode an image file into an RGBA :class:`PixelBuffer`.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError: If the image cannot be represented as RGBA.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Image not found: {path}")
    buf = PixelBuffer.from_array(_to_rgba(imread(str(path))))
    log.debug("Loaded %s (%dx%d)", path, buf.width, buf.height)
    return buf


def save_composition(buffer: PixelBuffer, output: Path) -> None:
    """Write *buffer* to *output*, creating parent directories."""
    output = Path(output)
    output.parent.mkdir(parents=True, exist_ok=True)
    imsave(str(output), buffer.to_array(), check_contrast=False)
    log.info("Composition written to %s", output)


def compare_files(
    reference: Path,
    candidate: Path,
    options: CompareOptions | None = None,
    composition_path: Path | None = None,
) -> CompareResult:
    """Load two image files and compare them.

    When *composition_path* is given the composition is rendered (regardless
    of ``options.render_composition``) and written there.

    Args:
        reference: Path to the reference (expected) image.
        candidate: Path to the candidate (actual) image.
        options: Comparison tolerances.
        composition_path: Where to write the green/red composition.

    Returns:
        The :class:`CompareResult` of the comparison.
    """
    options = options or CompareOptions()
    if composition_path is not None and not options.render_composition:
        options = replace(options, render_composition=True)

    result = compare(load_buffer(reference), load_buffer(candidate), options)

    if composition_path is not None and result.composition is not None:
        save_composition(result.composition, composition_path)
    return result
