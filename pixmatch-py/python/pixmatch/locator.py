"""Brute-force template location.

Every offset where the template fits inside the image is scored with the
same measure as :func:`pixmatch.similarity.similarity`. The cost is
O((W1-W2+1) * (H1-H2+1) * W2 * H2); the loops run over template pixels and
are vectorized across offsets, which keeps moderate sizes practical but does
not change that bound. Integral images or FFT-based correlation would be the
way to go faster.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from .errors import InvalidDimensionError
from .geometry import Point
from .matrix import ImageLike
from .similarity import MAX_DISTANCE, MAX_SCORE, grayscale

logger = logging.getLogger(__name__)

DEFAULT_MATCH = {
    "nms_radius": 4,
    "min_score": 0,
}


@dataclass(frozen=True)
class MatchConfig:
    """Options for :meth:`TemplateLocator.match_topk`.

    ``nms_radius`` suppresses candidates within that Chebyshev distance of an
    accepted match; ``min_score`` drops candidates scoring below it.
    """

    nms_radius: int = DEFAULT_MATCH["nms_radius"]
    min_score: int = DEFAULT_MATCH["min_score"]

    def __post_init__(self) -> None:
        if self.nms_radius < 0:
            raise ValueError(f"nms_radius must be >= 0, got {self.nms_radius}")
        if not 0 <= self.min_score <= MAX_SCORE:
            raise ValueError(f"min_score must be in [0, {MAX_SCORE}], got {self.min_score}")


@dataclass(frozen=True)
class Match:
    """Top-left offset of a template match and its similarity score."""

    x: int
    y: int
    score: int

    @property
    def point(self) -> Point:
        return Point(self.x, self.y)


def _check_fits(image: np.ndarray, template: np.ndarray) -> None:
    h1, w1 = image.shape[:2]
    h2, w2 = template.shape[:2]
    if w2 > w1 or h2 > h1:
        raise InvalidDimensionError(
            f"template {w2}x{h2} does not fit inside image {w1}x{h1}"
        )


def _score_map(image: np.ndarray, template: np.ndarray) -> np.ndarray:
    h1, w1 = image.shape[:2]
    h2, w2 = template.shape[:2]
    out_h = h1 - h2 + 1
    out_w = w1 - w2 + 1
    img = image.astype(np.int32)
    tpl = template.astype(np.int32)

    acc = np.zeros((out_h, out_w), dtype=np.int64)
    for ty in range(h2):
        for tx in range(w2):
            window = img[ty:ty + out_h, tx:tx + out_w]
            diff = np.abs(window - tpl[ty, tx]).sum(axis=-1)
            acc += MAX_SCORE - diff * MAX_SCORE // MAX_DISTANCE
    return acc // (w2 * h2)


class TemplateLocator:
    """Reusable locator for one template.

    The template is converted to grayscale once; each call converts only the
    search image.
    """

    def __init__(self, template: ImageLike, config: Optional[MatchConfig] = None) -> None:
        self._template = grayscale(template)
        self.config = config or MatchConfig()

    @property
    def width(self) -> int:
        return self._template.shape[1]

    @property
    def height(self) -> int:
        return self._template.shape[0]

    def score_map(self, image: ImageLike) -> np.ndarray:
        """Scores for all offsets; entry ``[y, x]`` is the score at offset ``(x, y)``."""
        pixels = grayscale(image)
        _check_fits(pixels, self._template)
        logger.debug(
            "scoring %dx%d template over %dx%d image (%d offsets)",
            self.width,
            self.height,
            pixels.shape[1],
            pixels.shape[0],
            (pixels.shape[1] - self.width + 1) * (pixels.shape[0] - self.height + 1),
        )
        return _score_map(pixels, self._template)

    def match(self, image: ImageLike) -> Match:
        """Best offset; ties go to the first offset in row-major order."""
        scores = self.score_map(image)
        y, x = np.unravel_index(int(np.argmax(scores)), scores.shape)
        best = Match(x=int(x), y=int(y), score=int(scores[y, x]))
        logger.debug("best match at (%d, %d) score %d", best.x, best.y, best.score)
        return best

    def locate(self, image: ImageLike) -> Point:
        return self.match(image).point

    def match_topk(self, image: ImageLike, k: int) -> List[Match]:
        """Up to ``k`` matches by descending score, after non-maximum suppression."""
        if k < 1:
            raise ValueError(f"k must be >= 1, got {k}")
        scores = self.score_map(image)
        radius = self.config.nms_radius
        order = np.argsort(-scores.ravel(), kind="stable")

        matches: List[Match] = []
        for idx in order:
            y, x = divmod(int(idx), scores.shape[1])
            score = int(scores[y, x])
            if score < self.config.min_score:
                break
            if any(abs(m.x - x) <= radius and abs(m.y - y) <= radius for m in matches):
                continue
            matches.append(Match(x=x, y=y, score=score))
            if len(matches) == k:
                break
        return matches


def score_map(image: ImageLike, template: ImageLike) -> np.ndarray:
    return TemplateLocator(template).score_map(image)


def match_template(image: ImageLike, template: ImageLike) -> Match:
    """Find where ``template`` best matches inside ``image``."""
    return TemplateLocator(template).match(image)


def locate_template(image: ImageLike, template: ImageLike) -> Point:
    """Top-left offset of the best match of ``template`` inside ``image``."""
    return match_template(image, template).point


def match_topk(
    image: ImageLike, template: ImageLike, k: int, config: Optional[MatchConfig] = None
) -> List[Match]:
    return TemplateLocator(template, config).match_topk(image, k)
