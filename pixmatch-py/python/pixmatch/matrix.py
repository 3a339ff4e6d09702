"""RGBA pixel grid backed by a numpy array.

A :class:`PixelMatrix` stores pixels row-major as an ``(height, width, 4)``
``uint8`` array, so ``pixels[y, x]`` is the ``(r, g, b, a)`` pixel at column
``x`` of row ``y``.
"""

from __future__ import annotations

import logging
from typing import Tuple, Union

import numpy as np
from PIL import Image

from .color import Color
from .errors import InvalidDimensionError, OutOfBoundsError
from .geometry import Rect
from .transforms import FunctionTransform, PixelTransform

logger = logging.getLogger(__name__)

CHANNELS = 4

ImageLike = Union["PixelMatrix", "MatrixImage", Image.Image, np.ndarray]


def _array_to_rgba(arr: np.ndarray) -> np.ndarray:
    if arr.dtype != np.uint8:
        raise TypeError(f"expected a uint8 array, got {arr.dtype}")
    if arr.ndim == 2:
        out = np.empty(arr.shape + (CHANNELS,), dtype=np.uint8)
        out[..., :3] = arr[..., None]
        out[..., 3] = 255
        return out
    if arr.ndim == 3 and arr.shape[2] == 3:
        out = np.empty(arr.shape[:2] + (CHANNELS,), dtype=np.uint8)
        out[..., :3] = arr
        out[..., 3] = 255
        return out
    if arr.ndim == 3 and arr.shape[2] == CHANNELS:
        return np.array(arr, dtype=np.uint8, copy=True)
    raise ValueError(f"unsupported array shape {arr.shape}")


class PixelMatrix:
    """Mutable RGBA pixel grid.

    The constructor takes ownership of ``pixels`` without copying it; use
    :meth:`from_image` to sample an external image into fresh storage.
    """

    __slots__ = ("_pixels",)

    def __init__(self, pixels: np.ndarray) -> None:
        pixels = np.asarray(pixels)
        if pixels.ndim != 3 or pixels.shape[2] != CHANNELS:
            raise ValueError(f"expected an (H, W, {CHANNELS}) array, got {pixels.shape}")
        self._pixels = np.ascontiguousarray(pixels, dtype=np.uint8)

    @classmethod
    def new(cls, width: int, height: int) -> PixelMatrix:
        """Zero-filled matrix (every channel of every pixel is 0)."""
        if width < 0 or height < 0:
            raise InvalidDimensionError(f"negative matrix size {width}x{height}")
        return cls(np.zeros((height, width, CHANNELS), dtype=np.uint8))

    @classmethod
    def from_image(cls, img: ImageLike) -> PixelMatrix:
        """Sample every coordinate of ``img`` into a new matrix.

        Accepts a Pillow image, a :class:`MatrixImage`, another
        :class:`PixelMatrix` or a ``uint8`` array shaped ``(H, W)``,
        ``(H, W, 3)`` or ``(H, W, 4)``. The result never shares storage with
        the source.
        """
        if isinstance(img, PixelMatrix):
            arr = img._pixels.copy()
        elif isinstance(img, MatrixImage):
            arr = img.matrix._pixels.copy()
        elif isinstance(img, np.ndarray):
            arr = _array_to_rgba(img)
        elif isinstance(img, Image.Image):
            if img.width == 0 or img.height == 0:
                raise InvalidDimensionError(f"image has no pixels: {img.width}x{img.height}")
            arr = np.array(img.convert("RGBA"), dtype=np.uint8)
        else:
            raise TypeError(f"cannot build a PixelMatrix from {type(img).__name__}")

        if arr.shape[0] == 0 or arr.shape[1] == 0:
            raise InvalidDimensionError(f"image has no pixels: {arr.shape[1]}x{arr.shape[0]}")
        return cls(arr)

    # ── Geometry ─────────────────────────────────────────────────────
    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def shape(self) -> Tuple[int, int, int]:
        return self._pixels.shape

    @property
    def bounds(self) -> Rect:
        return Rect(0, 0, self.width, self.height)

    @property
    def pixels(self) -> np.ndarray:
        """Read-only view of the underlying ``(H, W, 4)`` array."""
        view = self._pixels.view()
        view.flags.writeable = False
        return view

    # ── Pixel access ─────────────────────────────────────────────────
    def _check_bounds(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise OutOfBoundsError(
                f"({x}, {y}) outside {self.width}x{self.height} matrix"
            )

    def at(self, x: int, y: int) -> Color:
        self._check_bounds(x, y)
        r, g, b, a = self._pixels[y, x]
        return Color(int(r), int(g), int(b), int(a))

    def set(self, x: int, y: int, color: Tuple[int, int, int, int]) -> None:
        self._check_bounds(x, y)
        self._pixels[y, x] = color

    # ── Copies and views ─────────────────────────────────────────────
    def clone(self) -> PixelMatrix:
        return PixelMatrix(self._pixels.copy())

    def crop(self, rect: Union[Rect, Tuple[int, int, int, int]]) -> PixelMatrix:
        """Copy of the sub-region ``rect`` (``x0, y0, x1, y1``, half-open)."""
        rect = Rect(*rect)
        if rect.empty or not rect.inside(self.bounds):
            raise InvalidDimensionError(
                f"crop {tuple(rect)} outside {self.width}x{self.height} matrix"
            )
        return PixelMatrix(self._pixels[rect.y0:rect.y1, rect.x0:rect.x1].copy())

    def as_image(self) -> MatrixImage:
        return MatrixImage(self)

    def to_pil(self) -> Image.Image:
        return Image.fromarray(self._pixels)

    # ── Processing ───────────────────────────────────────────────────
    def process(self, transform) -> PixelMatrix:
        """Apply ``transform`` to every pixel and return ``self``.

        The transform sees a read-only view of the current pixels and writes
        into fresh storage, which then replaces the matrix's own array. Plain
        callables taking ``(point, color)`` are accepted too.
        """
        if not isinstance(transform, PixelTransform):
            transform = FunctionTransform(transform)

        out = transform.apply(self.pixels)
        if not out.flags.writeable or np.shares_memory(out, self._pixels):
            out = out.copy()
        if out.shape != self._pixels.shape:
            raise ValueError(
                f"{transform!r} changed the matrix shape from {self._pixels.shape} to {out.shape}"
            )
        self._pixels = np.ascontiguousarray(out, dtype=np.uint8)
        logger.debug("applied %r to %dx%d matrix", transform, self.width, self.height)
        return self

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelMatrix):
            return NotImplemented
        return np.array_equal(self._pixels, other._pixels)

    __hash__ = None

    def __repr__(self) -> str:
        return f"PixelMatrix(width={self.width}, height={self.height})"


class MatrixImage:
    """Read-only raster view over a :class:`PixelMatrix`.

    Mirrors the parts of Pillow's ``Image`` interface that image consumers
    rely on: ``width``, ``height``, ``size``, ``mode`` and ``getpixel``.
    ``crop`` extracts a real sub-region.
    """

    mode = "RGBA"

    def __init__(self, matrix: PixelMatrix) -> None:
        self._matrix = matrix

    @property
    def matrix(self) -> PixelMatrix:
        return self._matrix

    @property
    def width(self) -> int:
        return self._matrix.width

    @property
    def height(self) -> int:
        return self._matrix.height

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def bounds(self) -> Rect:
        return self._matrix.bounds

    def getpixel(self, xy: Tuple[int, int]) -> Color:
        x, y = xy
        return self._matrix.at(x, y)

    def crop(self, box: Union[Rect, Tuple[int, int, int, int]]) -> MatrixImage:
        return MatrixImage(self._matrix.crop(box))

    def to_pil(self) -> Image.Image:
        return self._matrix.to_pil()

    def __repr__(self) -> str:
        return f"MatrixImage(mode={self.mode}, size={self.width}x{self.height})"
