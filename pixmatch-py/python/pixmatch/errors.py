"""Exceptions raised by pixmatch."""


class PixmatchError(Exception):
    """Base class for all pixmatch errors."""


class InvalidDimensionError(PixmatchError, ValueError):
    """Zero-sized input, empty overlap, or a template that does not fit the image."""


class OutOfBoundsError(PixmatchError, IndexError):
    """Coordinate access outside a matrix."""
