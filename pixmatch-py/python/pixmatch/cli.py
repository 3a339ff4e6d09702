"""Command-line front end: ``pixmatch {similarity,locate,process}``."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .errors import PixmatchError
from .io import load_image, save_image
from .locator import DEFAULT_MATCH, MatchConfig, TemplateLocator
from .similarity import similarity
from .transforms import TRANSFORMS, Pipeline, get_transform

logger = logging.getLogger(__name__)


def cmd_similarity(args: argparse.Namespace) -> int:
    score = similarity(load_image(args.first), load_image(args.second))
    print(score)
    return 0


def cmd_locate(args: argparse.Namespace) -> int:
    image = load_image(args.image)
    config = MatchConfig(nms_radius=args.nms_radius, min_score=args.min_score)
    locator = TemplateLocator(load_image(args.template), config)

    if args.topk > 1:
        matches = locator.match_topk(image, args.topk)
    else:
        matches = [locator.match(image)]

    if args.json:
        print(json.dumps([{"x": m.x, "y": m.y, "score": m.score} for m in matches], indent=2))
    else:
        for m in matches:
            print(f"{m.x} {m.y} {m.score}")
    return 0


def cmd_process(args: argparse.Namespace) -> int:
    options = {"ratio": args.ratio} if args.ratio is not None else {}
    transforms = [
        get_transform(name, **options) if name == "sunset" else get_transform(name)
        for name in args.transform
    ]

    matrix = load_image(args.input)
    matrix.process(Pipeline(*transforms))
    save_image(matrix, args.output)
    logger.info("wrote %s (%s)", args.output, ", ".join(args.transform))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pixmatch",
        description="Pixel transforms, image similarity and brute-force template location.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_sim = sub.add_parser("similarity", help="print the 0..1000 similarity of two images")
    p_sim.add_argument("first", type=Path)
    p_sim.add_argument("second", type=Path)
    p_sim.set_defaults(func=cmd_similarity)

    p_loc = sub.add_parser("locate", help="find a template inside an image")
    p_loc.add_argument("image", type=Path)
    p_loc.add_argument("template", type=Path)
    p_loc.add_argument("--topk", type=int, default=1)
    p_loc.add_argument("--nms-radius", type=int, default=DEFAULT_MATCH["nms_radius"])
    p_loc.add_argument("--min-score", type=int, default=DEFAULT_MATCH["min_score"])
    p_loc.add_argument("--json", action="store_true", help="print matches as JSON")
    p_loc.set_defaults(func=cmd_locate)

    p_proc = sub.add_parser("process", help="apply pixel transforms to an image")
    p_proc.add_argument("input", type=Path)
    p_proc.add_argument("output", type=Path)
    p_proc.add_argument(
        "--transform",
        action="append",
        choices=sorted(TRANSFORMS),
        required=True,
        help="transform to apply; repeat to chain",
    )
    p_proc.add_argument("--ratio", type=float, default=None, help="sunset tint ratio")
    p_proc.set_defaults(func=cmd_process)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.func(args)
    except (PixmatchError, ValueError, OSError) as err:
        print(f"pixmatch: error: {err}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
