"""Per-pixel transforms.

A transform maps ``(point, color)`` to a new color. Each one is usable per
pixel through ``__call__`` and over a whole ``(H, W, 4)`` array through
``apply``; the presets override ``apply`` with vectorized numpy code that
gives the same result as the per-pixel path.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

import numpy as np

from .color import Color, clamp_u8
from .geometry import Point

# 16-bit fixed-point luminance weights (0.299, 0.587, 0.114); they sum to 1 << 16.
LUMA_R = 19595
LUMA_G = 38469
LUMA_B = 7472

PERCEPTUAL_GAMMA = 2.2
PERCEPTUAL_WEIGHTS = (0.2973, 0.6274, 0.0753)

DEFAULT_SUNSET_RATIO = 0.7


def _to_color(value: Tuple[float, ...]) -> Color:
    r, g, b, a = value
    return Color(clamp_u8(r), clamp_u8(g), clamp_u8(b), clamp_u8(a))


def _gray_array(pixels: np.ndarray, gray: np.ndarray) -> np.ndarray:
    out = np.empty_like(pixels)
    out[..., :3] = gray[..., None]
    out[..., 3] = pixels[..., 3]
    return out


class PixelTransform:
    """Base class for pixel transforms.

    Subclasses implement ``__call__``. They must be deterministic and keep no
    mutable state, so one instance can be reused across matrices.
    """

    def __call__(self, point: Point, color: Color) -> Color:
        raise NotImplementedError

    def apply(self, pixels: np.ndarray) -> np.ndarray:
        """Return a new array with the transform applied row-major to ``pixels``."""
        out = np.empty_like(pixels)
        height, width = pixels.shape[:2]
        for y in range(height):
            row = pixels[y]
            for x in range(width):
                r, g, b, a = row[x]
                color = self(Point(x, y), Color(int(r), int(g), int(b), int(a)))
                out[y, x] = _to_color(color)
        return out


class FunctionTransform(PixelTransform):
    """Adapts a plain ``fn(point, color) -> color`` callable."""

    def __init__(self, fn: Callable[[Point, Color], Tuple[float, float, float, float]]) -> None:
        if not callable(fn):
            raise TypeError(f"transform must be callable, got {type(fn).__name__}")
        self._fn = fn

    def __call__(self, point: Point, color: Color) -> Color:
        return _to_color(self._fn(point, color))

    def __repr__(self) -> str:
        name = getattr(self._fn, "__name__", repr(self._fn))
        return f"FunctionTransform({name})"


class Pipeline(PixelTransform):
    """Applies several transforms in order."""

    def __init__(self, *transforms) -> None:
        self.transforms = tuple(
            t if isinstance(t, PixelTransform) else FunctionTransform(t) for t in transforms
        )

    def __call__(self, point: Point, color: Color) -> Color:
        for t in self.transforms:
            color = _to_color(t(point, color))
        return color

    def apply(self, pixels: np.ndarray) -> np.ndarray:
        out = pixels
        for t in self.transforms:
            out = t.apply(out)
        if out is pixels:
            out = pixels.copy()
        return out

    def __repr__(self) -> str:
        return f"Pipeline({', '.join(repr(t) for t in self.transforms)})"


@dataclass(frozen=True)
class LuminanceGray(PixelTransform):
    """``gray = (R*19595 + G*38469 + B*7472) >> 16``; alpha unchanged."""

    def __call__(self, point: Point, color: Color) -> Color:
        r, g, b, a = color
        gray = (r * LUMA_R + g * LUMA_G + b * LUMA_B) >> 16
        return Color(gray, gray, gray, a)

    def apply(self, pixels: np.ndarray) -> np.ndarray:
        p = pixels.astype(np.uint32)
        gray = (p[..., 0] * LUMA_R + p[..., 1] * LUMA_G + p[..., 2] * LUMA_B) >> 16
        return _gray_array(pixels, gray.astype(np.uint8))


@dataclass(frozen=True)
class PerceptualGray(PixelTransform):
    """Gamma-weighted gray: ``(0.2973 R^2.2 + 0.6274 G^2.2 + 0.0753 B^2.2)^(1/2.2)``."""

    def __call__(self, point: Point, color: Color) -> Color:
        r, g, b, a = color
        wr, wg, wb = PERCEPTUAL_WEIGHTS
        linear = (
            wr * math.pow(r, PERCEPTUAL_GAMMA)
            + wg * math.pow(g, PERCEPTUAL_GAMMA)
            + wb * math.pow(b, PERCEPTUAL_GAMMA)
        )
        gray = clamp_u8(math.pow(linear, 1.0 / PERCEPTUAL_GAMMA))
        return Color(gray, gray, gray, a)

    def apply(self, pixels: np.ndarray) -> np.ndarray:
        p = pixels[..., :3].astype(np.float64)
        linear = np.power(p, PERCEPTUAL_GAMMA) @ np.asarray(PERCEPTUAL_WEIGHTS)
        gray = np.clip(np.floor(np.power(linear, 1.0 / PERCEPTUAL_GAMMA)), 0, 255)
        return _gray_array(pixels, gray.astype(np.uint8))


@dataclass(frozen=True)
class AverageGray(PixelTransform):
    """``gray = (R + G + B) / 3``, truncated; alpha unchanged."""

    def __call__(self, point: Point, color: Color) -> Color:
        r, g, b, a = color
        gray = (r + g + b) // 3
        return Color(gray, gray, gray, a)

    def apply(self, pixels: np.ndarray) -> np.ndarray:
        gray = pixels[..., :3].astype(np.uint16).sum(axis=-1) // 3
        return _gray_array(pixels, gray.astype(np.uint8))


@dataclass(frozen=True)
class SunsetTint(PixelTransform):
    """Warm tint: red and green scaled by ``ratio``, blue and alpha kept.

    A ratio of ``0`` or ``None`` selects the default of 0.7.
    """

    ratio: Optional[float] = DEFAULT_SUNSET_RATIO

    def __post_init__(self) -> None:
        if not self.ratio:
            object.__setattr__(self, "ratio", DEFAULT_SUNSET_RATIO)
        if self.ratio < 0:
            raise ValueError(f"sunset ratio must be non-negative, got {self.ratio}")

    def __call__(self, point: Point, color: Color) -> Color:
        r, g, b, a = color
        return Color(clamp_u8(r * self.ratio), clamp_u8(g * self.ratio), b, a)

    def apply(self, pixels: np.ndarray) -> np.ndarray:
        out = pixels.copy()
        scaled = np.floor(pixels[..., :2].astype(np.float64) * self.ratio)
        out[..., :2] = np.clip(scaled, 0, 255).astype(np.uint8)
        return out


def gray() -> LuminanceGray:
    return LuminanceGray()


def gray_perceptual() -> PerceptualGray:
    return PerceptualGray()


def gray_average() -> AverageGray:
    return AverageGray()


def sunset(ratio: Optional[float] = DEFAULT_SUNSET_RATIO) -> SunsetTint:
    return SunsetTint(ratio)


TRANSFORMS: Dict[str, Callable[..., PixelTransform]] = {
    "gray": gray,
    "gray-ps": gray_perceptual,
    "gray-avg": gray_average,
    "sunset": sunset,
}


def get_transform(name: str, **options) -> PixelTransform:
    """Build a preset by name, e.g. ``get_transform("sunset", ratio=0.5)``."""
    try:
        factory = TRANSFORMS[name]
    except KeyError:
        raise ValueError(
            f"unknown transform '{name}' (expected one of {', '.join(sorted(TRANSFORMS))})"
        ) from None
    return factory(**options)