from __future__ import annotations

from typing import NamedTuple


class Color(NamedTuple):
    """Non-premultiplied RGBA color, 8 bits per channel."""

    r: int
    g: int
    b: int
    a: int = 255


def clamp_u8(value: float) -> int:
    if value < 0.0:
        return 0
    if value > 255.0:
        return 255
    return int(value)
