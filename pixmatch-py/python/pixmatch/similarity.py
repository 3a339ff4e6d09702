"""Pixel closeness and whole-image similarity on a 0..1000 scale."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .errors import InvalidDimensionError
from .matrix import ImageLike, PixelMatrix
from .transforms import LuminanceGray

MAX_SCORE = 1000
# Largest possible per-pixel distance: every channel differs by 255.
MAX_DISTANCE = 255 * 4


def closeness(p1: Sequence[int], p2: Sequence[int]) -> int:
    """Score two RGBA pixels: 1000 when identical, 0 when maximally different."""
    diff = sum(abs(int(a) - int(b)) for a, b in zip(p1, p2))
    return MAX_SCORE - diff * MAX_SCORE // MAX_DISTANCE


def closeness_array(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Vectorized :func:`closeness` over two ``(..., 4)`` arrays of equal shape."""
    diff = np.abs(a.astype(np.int32) - b.astype(np.int32)).sum(axis=-1)
    return MAX_SCORE - diff * MAX_SCORE // MAX_DISTANCE


def grayscale(img: ImageLike) -> np.ndarray:
    """Luminance-grayscale RGBA pixels of ``img``, as used for scoring."""
    return PixelMatrix.from_image(img).process(LuminanceGray()).pixels


def similarity_pixels(a: np.ndarray, b: np.ndarray) -> int:
    """Mean closeness of two pixel arrays over their overlapping region."""
    height = min(a.shape[0], b.shape[0])
    width = min(a.shape[1], b.shape[1])
    if width == 0 or height == 0:
        raise InvalidDimensionError(
            f"no overlap between {a.shape[1]}x{a.shape[0]} and {b.shape[1]}x{b.shape[0]}"
        )
    scores = closeness_array(a[:height, :width], b[:height, :width])
    return int(scores.sum()) // (width * height)


def similarity(img1: ImageLike, img2: ImageLike) -> int:
    """Similarity of two images, 0..1000.

    Both images are converted to luminance grayscale and compared over the
    region they share (``min`` of the widths and heights); the result is the
    floored mean of the per-pixel closeness scores.
    """
    return similarity_pixels(grayscale(img1), grayscale(img2))
