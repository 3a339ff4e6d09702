"""Image file I/O through Pillow."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from PIL import Image

from .matrix import PixelMatrix

logger = logging.getLogger(__name__)

# Formats Pillow cannot write with an alpha channel.
RGB_ONLY_EXTS = {".jpg", ".jpeg"}


def load_image(path: Union[str, Path]) -> PixelMatrix:
    """Decode an image file into a :class:`PixelMatrix`."""
    path = Path(path)
    with Image.open(path) as img:
        matrix = PixelMatrix.from_image(img)
    logger.debug("loaded %s (%dx%d)", path, matrix.width, matrix.height)
    return matrix


def save_image(matrix: PixelMatrix, path: Union[str, Path]) -> None:
    """Encode ``matrix`` to ``path``; the format follows the file extension."""
    path = Path(path)
    img = matrix.to_pil()
    if path.suffix.lower() in RGB_ONLY_EXTS:
        img = img.convert("RGB")
    img.save(path)
    logger.debug("saved %s (%dx%d)", path, matrix.width, matrix.height)
