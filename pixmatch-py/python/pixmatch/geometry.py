from __future__ import annotations

from typing import NamedTuple


class Point(NamedTuple):
    x: int
    y: int

    def add(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)


class Rect(NamedTuple):
    """Half-open rectangle ``[x0, x1) x [y0, y1)``."""

    x0: int
    y0: int
    x1: int
    y1: int

    @classmethod
    def from_size(cls, x: int, y: int, width: int, height: int) -> Rect:
        return cls(x, y, x + width, y + height)

    @property
    def dx(self) -> int:
        return self.x1 - self.x0

    @property
    def dy(self) -> int:
        return self.y1 - self.y0

    width = dx
    height = dy

    @property
    def empty(self) -> bool:
        return self.x0 >= self.x1 or self.y0 >= self.y1

    def move(self, point: Point) -> Rect:
        return Rect(self.x0 + point.x, self.y0 + point.y, self.x1 + point.x, self.y1 + point.y)

    def resize(self, width: int, height: int) -> Rect:
        return Rect(self.x0, self.y0, self.x0 + width, self.y0 + height)

    def contains(self, point: Point) -> bool:
        return self.x0 <= point.x < self.x1 and self.y0 <= point.y < self.y1

    def inside(self, other: Rect) -> bool:
        """True when this rectangle lies entirely within ``other``."""
        return (
            other.x0 <= self.x0
            and other.y0 <= self.y0
            and self.x1 <= other.x1
            and self.y1 <= other.y1
        )

    def intersect(self, other: Rect) -> Rect:
        r = Rect(
            max(self.x0, other.x0),
            max(self.y0, other.y0),
            min(self.x1, other.x1),
            min(self.y1, other.y1),
        )
        if r.empty:
            return Rect(0, 0, 0, 0)
        return r
