"""PixMatch - pixel transforms, image similarity and template location.

Images are sampled into a mutable RGBA grid (``PixelMatrix``), optionally run
through per-pixel transforms, and compared with a 0..1000 similarity score.
Template location is a brute-force search over every offset of a smaller
image inside a larger one.

Example usage:

    from PIL import Image
    import pixmatch

    # Grayscale an image and write it back out
    matrix = pixmatch.PixelMatrix.from_image(Image.open("photo.png"))
    matrix.process(pixmatch.LuminanceGray()).to_pil().save("gray.png")

    # Chain transforms
    matrix.process(pixmatch.Pipeline(pixmatch.SunsetTint(0.6), pixmatch.AverageGray()))

    # Compare two images (1000 means identical after grayscale conversion)
    score = pixmatch.similarity(Image.open("a.png"), Image.open("b.png"))

    # Locate a template
    point = pixmatch.locate_template(Image.open("screen.png"), Image.open("button.png"))
    print(f"Found at ({point.x}, {point.y})")

    # For repeated searches with the same template:
    locator = pixmatch.TemplateLocator(Image.open("button.png"))
    best = locator.match(Image.open("screen.png"))
    top = locator.match_topk(Image.open("screen.png"), k=3)
"""

__version__ = "0.1.0"

from .color import Color
from .errors import InvalidDimensionError, OutOfBoundsError, PixmatchError
from .geometry import Point, Rect
from .io import load_image, save_image
from .locator import (
    DEFAULT_MATCH,
    Match,
    MatchConfig,
    TemplateLocator,
    locate_template,
    match_template,
    match_topk,
    score_map,
)
from .matrix import MatrixImage, PixelMatrix
from .similarity import closeness, similarity
from .transforms import (
    AverageGray,
    FunctionTransform,
    LuminanceGray,
    PerceptualGray,
    Pipeline,
    PixelTransform,
    SunsetTint,
    get_transform,
)

__all__ = [
    "Color",
    "Point",
    "Rect",
    "PixelMatrix",
    "MatrixImage",
    "PixelTransform",
    "FunctionTransform",
    "Pipeline",
    "LuminanceGray",
    "PerceptualGray",
    "AverageGray",
    "SunsetTint",
    "get_transform",
    "closeness",
    "similarity",
    "Match",
    "MatchConfig",
    "DEFAULT_MATCH",
    "TemplateLocator",
    "match_template",
    "locate_template",
    "match_topk",
    "score_map",
    "load_image",
    "save_image",
    "PixmatchError",
    "InvalidDimensionError",
    "OutOfBoundsError",
    "__version__",
]
