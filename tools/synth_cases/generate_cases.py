#!/usr/bin/env python3
import argparse
import json
import math
import random
import shutil
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, List, Optional, Tuple

try:
    from PIL import Image
except ImportError:  # pragma: no cover - runtime guard
    print(
        "Pillow is required. Install the project first:\n"
        "  pip install -e .[test]",
        file=sys.stderr,
    )
    raise SystemExit(1)


DEFAULT_MATCH = {
    "nms_radius": 4,
    "min_score": 0,
}


@dataclass(frozen=True)
class CaseSpec:
    case_id: str
    family: str
    image_size: Tuple[int, int]
    template_size: Tuple[int, int]
    template_pattern: str
    background_style: str
    present: bool = True
    tint: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    template_gain: float = 1.0
    template_bias: float = 0.0
    noise_sigma: float = 0.0
    blur_sigma: float = 0.0
    salt_pepper: float = 0.0
    occlusion_frac: float = 0.0
    distractors: int = 0
    place_mode: str = "random"
    background_value: Optional[int] = None
    match_overrides: Optional[Dict[str, object]] = None
    topk: Optional[int] = None
    notes: str = ""


def clamp_u8(value: float) -> int:
    if value < 0.0:
        return 0
    if value > 255.0:
        return 255
    return int(value)


def gaussian_kernel_1d(sigma: float) -> List[float]:
    if sigma <= 0.0:
        return [1.0]
    radius = max(1, int(math.ceil(3.0 * sigma)))
    denom = 2.0 * sigma * sigma
    kernel = [math.exp(-(x * x) / denom) for x in range(-radius, radius + 1)]
    norm = sum(kernel)
    return [v / norm for v in kernel]


def gaussian_blur_u8(data: List[int], width: int, height: int, sigma: float) -> List[int]:
    kernel = gaussian_kernel_1d(sigma)
    if len(kernel) == 1:
        return data[:]

    radius = len(kernel) // 2
    temp = [0.0] * (width * height)
    for y in range(height):
        row = y * width
        for x in range(width):
            acc = 0.0
            for k, w in enumerate(kernel):
                xx = min(max(x + k - radius, 0), width - 1)
                acc += data[row + xx] * w
            temp[row + x] = acc

    out = [0] * (width * height)
    for y in range(height):
        for x in range(width):
            acc = 0.0
            for k, w in enumerate(kernel):
                yy = min(max(y + k - radius, 0), height - 1)
                acc += temp[yy * width + x] * w
            out[y * width + x] = clamp_u8(round(acc))
    return out


def add_gaussian_noise_inplace(data: List[int], sigma: float, rng: random.Random) -> None:
    if sigma <= 0.0:
        return
    for i, value in enumerate(data):
        data[i] = clamp_u8(round(value + rng.gauss(0.0, sigma)))


def add_salt_pepper_inplace(data: List[int], prob: float, rng: random.Random) -> None:
    if prob <= 0.0:
        return
    for i in range(len(data)):
        if rng.random() < prob:
            data[i] = 0 if rng.random() < 0.5 else 255


def pattern_xor(width: int, height: int) -> List[int]:
    return [((x * 13) ^ (y * 7) ^ (x * y)) & 0xFF for y in range(height) for x in range(width)]


def pattern_checker(width: int, height: int, cell: int) -> List[int]:
    out = []
    for y in range(height):
        for x in range(width):
            on = ((x // cell) + (y // cell)) % 2 == 0
            out.append(32 if on else 224)
    return out


def pattern_rings(width: int, height: int, freq: float) -> List[int]:
    out = []
    cx = (width - 1) * 0.5
    cy = (height - 1) * 0.5
    for y in range(height):
        for x in range(width):
            r = math.hypot(x - cx, y - cy)
            out.append(clamp_u8(round(128.0 + 110.0 * math.sin(r * freq))))
    return out


def pattern_noise(width: int, height: int, rng: random.Random) -> List[int]:
    return [rng.randint(0, 255) for _ in range(width * height)]


def make_pattern(name: str, width: int, height: int, rng: random.Random) -> List[int]:
    if name == "xor":
        return pattern_xor(width, height)
    if name == "checker":
        cell = max(2, min(width, height) // 6)
        return pattern_checker(width, height, cell)
    if name == "rings":
        return pattern_rings(width, height, 0.45)
    if name == "noise":
        data = pattern_noise(width, height, rng)
        return gaussian_blur_u8(data, width, height, 0.6)
    raise ValueError(f"unknown pattern '{name}'")


def make_background(
    style: str, width: int, height: int, rng: random.Random, value: Optional[int]
) -> List[int]:
    if style == "flat":
        fill = value if value is not None else rng.randint(20, 200)
        return [fill] * (width * height)
    if style == "gradient":
        base = rng.randint(40, 140)
        ax = rng.uniform(-0.6, 0.6)
        ay = rng.uniform(-0.6, 0.6)
        return [
            clamp_u8(round(base + ax * x + ay * y)) for y in range(height) for x in range(width)
        ]
    if style == "noise":
        return pattern_noise(width, height, rng)
    if style == "mixed":
        base = make_background("gradient", width, height, rng, value)
        return [clamp_u8(v + rng.randint(-20, 20)) for v in base]
    raise ValueError(f"unknown background '{style}'")


def rects_overlap(a: Tuple[int, int, int, int], b: Tuple[int, int, int, int]) -> bool:
    ax, ay, aw, ah = a
    bx, by, bw, bh = b
    return ax < bx + bw and ax + aw > bx and ay < by + bh and ay + ah > by


def choose_position(
    rng: random.Random,
    img_w: int,
    img_h: int,
    tpl_w: int,
    tpl_h: int,
    place_mode: str,
    avoid: List[Tuple[int, int, int, int]],
) -> Tuple[int, int]:
    margin = 2
    max_x = max(0, img_w - tpl_w)
    max_y = max(0, img_h - tpl_h)

    def pick() -> Tuple[int, int]:
        if place_mode == "edge":
            edge = rng.choice(["left", "right", "top", "bottom"])
            if edge == "left":
                return 0, rng.randint(0, max_y)
            if edge == "right":
                return max_x, rng.randint(0, max_y)
            if edge == "top":
                return rng.randint(0, max_x), 0
            return rng.randint(0, max_x), max_y
        x0 = rng.randint(margin, max_x - margin) if max_x > margin * 2 else 0
        y0 = rng.randint(margin, max_y - margin) if max_y > margin * 2 else 0
        return x0, y0

    for _ in range(80):
        x0, y0 = pick()
        rect = (x0, y0, tpl_w, tpl_h)
        if not any(rects_overlap(rect, other) for other in avoid):
            return x0, y0
    return pick()


def embed_template(
    image: List[int],
    img_w: int,
    tpl: List[int],
    tpl_w: int,
    tpl_h: int,
    x0: int,
    y0: int,
    gain: float,
    bias: float,
) -> None:
    for y in range(tpl_h):
        row = (y0 + y) * img_w
        tpl_row = y * tpl_w
        for x in range(tpl_w):
            image[row + x0 + x] = clamp_u8(round(tpl[tpl_row + x] * gain + bias))


def apply_occlusion(
    image: List[int],
    background: List[int],
    img_w: int,
    x0: int,
    y0: int,
    tpl_w: int,
    tpl_h: int,
    frac: float,
    rng: random.Random,
) -> Optional[Dict[str, int]]:
    if frac <= 0.0:
        return None
    area = max(1, min(int(tpl_w * tpl_h * frac), tpl_w * tpl_h))
    ratio = rng.uniform(0.6, 1.6)
    occ_w = max(1, min(tpl_w, int(round(math.sqrt(area) * ratio))))
    occ_h = max(1, min(tpl_h, int(round(area / occ_w))))
    ox = rng.randint(x0, x0 + tpl_w - occ_w)
    oy = rng.randint(y0, y0 + tpl_h - occ_h)

    for y in range(occ_h):
        row = (oy + y) * img_w
        for x in range(occ_w):
            idx = row + ox + x
            image[idx] = background[idx]

    return {"x": ox, "y": oy, "width": occ_w, "height": occ_h}


def stable_seed(base_seed: int, case_id: str, index: int) -> int:
    h = 2166136261
    for ch in case_id:
        h ^= ord(ch)
        h = (h * 16777619) & 0xFFFFFFFF
    h ^= (index + 1) * 0x9E3779B1
    h ^= base_seed & 0xFFFFFFFF
    return h & 0xFFFFFFFF


def save_png(
    path: Path, data: List[int], width: int, height: int, tint: Tuple[float, float, float]
) -> None:
    """Write an intensity list as an RGBA PNG, scaling R, G, B by ``tint``."""
    tr, tg, tb = tint
    rgba = bytearray()
    for value in data:
        rgba += bytes((clamp_u8(value * tr), clamp_u8(value * tg), clamp_u8(value * tb), 255))
    img = Image.frombytes("RGBA", (width, height), bytes(rgba))
    img.save(path, format="PNG")


def generate_case(
    spec: CaseSpec,
    out_dir: Path,
    base_seed: int,
    case_index: int,
) -> Dict[str, object]:
    case_seed = stable_seed(base_seed, spec.case_id, case_index)
    rng = random.Random(case_seed)

    tpl_w, tpl_h = spec.template_size
    img_w, img_h = spec.image_size
    template = make_pattern(spec.template_pattern, tpl_w, tpl_h, rng)
    background = make_background(
        spec.background_style, img_w, img_h, rng, spec.background_value
    )
    image = background[:]

    instances = []
    avoid = []
    occlusion = None

    if spec.present:
        x0, y0 = choose_position(rng, img_w, img_h, tpl_w, tpl_h, spec.place_mode, avoid)
        embed_template(
            image, img_w, template, tpl_w, tpl_h, x0, y0, spec.template_gain, spec.template_bias
        )
        avoid.append((x0, y0, tpl_w, tpl_h))
        instances.append(
            {
                "kind": "target",
                "x": x0,
                "y": y0,
                "gain": spec.template_gain,
                "bias": spec.template_bias,
            }
        )
        if spec.occlusion_frac > 0.0:
            occlusion = apply_occlusion(
                image, background, img_w, x0, y0, tpl_w, tpl_h, spec.occlusion_frac, rng
            )

    for _ in range(spec.distractors):
        dx, dy = choose_position(rng, img_w, img_h, tpl_w, tpl_h, "random", avoid)
        gain = spec.template_gain * rng.uniform(0.8, 0.9)
        bias = spec.template_bias + rng.uniform(10.0, 20.0)
        embed_template(image, img_w, template, tpl_w, tpl_h, dx, dy, gain, bias)
        avoid.append((dx, dy, tpl_w, tpl_h))
        instances.append({"kind": "distractor", "x": dx, "y": dy, "gain": gain, "bias": bias})

    if spec.blur_sigma > 0.0:
        image = gaussian_blur_u8(image, img_w, img_h, spec.blur_sigma)
    add_gaussian_noise_inplace(image, spec.noise_sigma, rng)
    add_salt_pepper_inplace(image, spec.salt_pepper, rng)

    match_cfg = dict(DEFAULT_MATCH)
    if spec.match_overrides:
        match_cfg.update(spec.match_overrides)
    topk = spec.topk
    if topk is None:
        topk = max(1, (1 if spec.present else 0) + spec.distractors)

    save_png(out_dir / "image.png", image, img_w, img_h, spec.tint)
    save_png(out_dir / "template.png", template, tpl_w, tpl_h, spec.tint)

    cli_config = {
        "image_path": "image.png",
        "template_path": "template.png",
        "topk": topk,
        "match": match_cfg,
    }
    with (out_dir / "cli_config.json").open("w", encoding="utf-8") as handle:
        json.dump(cli_config, handle, indent=2, sort_keys=True)

    meta = {
        "case_id": spec.case_id,
        "family": spec.family,
        "seed": case_seed,
        "present": spec.present,
        "image": {"width": img_w, "height": img_h},
        "template": {
            "width": tpl_w,
            "height": tpl_h,
            "pattern": spec.template_pattern,
        },
        "background": {
            "style": spec.background_style,
            "value": spec.background_value,
        },
        "tint": list(spec.tint),
        "effects": {
            "template_gain": spec.template_gain,
            "template_bias": spec.template_bias,
            "noise_sigma": spec.noise_sigma,
            "blur_sigma": spec.blur_sigma,
            "salt_pepper": spec.salt_pepper,
            "occlusion_frac": spec.occlusion_frac,
        },
        "instances": instances,
        "occlusion": occlusion,
        "cli_config": cli_config,
        "notes": spec.notes,
    }
    with (out_dir / "meta.json").open("w", encoding="utf-8") as handle:
        json.dump(meta, handle, indent=2, sort_keys=True)

    return {
        "case_id": spec.case_id,
        "family": spec.family,
        "dir": out_dir.name,
        "present": spec.present,
        "image": str(Path(out_dir.name) / "image.png"),
        "template": str(Path(out_dir.name) / "template.png"),
        "meta": str(Path(out_dir.name) / "meta.json"),
        "cli_config": str(Path(out_dir.name) / "cli_config.json"),
        "topk": topk,
    }


def base_cases_standard() -> List[CaseSpec]:
    return [
        CaseSpec(
            case_id="clean_translation",
            family="translation",
            image_size=(160, 120),
            template_size=(40, 30),
            template_pattern="xor",
            background_style="flat",
        ),
        CaseSpec(
            case_id="tinted_translation",
            family="translation",
            image_size=(160, 120),
            template_size=(36, 28),
            template_pattern="rings",
            background_style="gradient",
            tint=(1.0, 0.75, 0.4),
            notes="color image; scoring runs on luminance",
        ),
        CaseSpec(
            case_id="noise_gaussian",
            family="noise",
            image_size=(160, 120),
            template_size=(40, 32),
            template_pattern="xor",
            background_style="gradient",
            noise_sigma=10.0,
        ),
        CaseSpec(
            case_id="salt_pepper",
            family="noise",
            image_size=(160, 120),
            template_size=(40, 32),
            template_pattern="checker",
            background_style="mixed",
            salt_pepper=0.02,
        ),
        CaseSpec(
            case_id="blur_sigma_0_8",
            family="blur",
            image_size=(160, 120),
            template_size=(44, 34),
            template_pattern="rings",
            background_style="mixed",
            blur_sigma=0.8,
        ),
        CaseSpec(
            case_id="occluded_20pct",
            family="occlusion",
            image_size=(160, 120),
            template_size=(44, 34),
            template_pattern="xor",
            background_style="flat",
            occlusion_frac=0.2,
            noise_sigma=3.0,
        ),
        CaseSpec(
            case_id="distractors_topk",
            family="distractors",
            image_size=(200, 160),
            template_size=(36, 28),
            template_pattern="noise",
            background_style="mixed",
            distractors=2,
            topk=3,
            match_overrides={"nms_radius": 8},
        ),
        CaseSpec(
            case_id="near_border",
            family="edge",
            image_size=(160, 120),
            template_size=(40, 30),
            template_pattern="checker",
            background_style="gradient",
            place_mode="edge",
        ),
        CaseSpec(
            case_id="negative_no_match",
            family="negative",
            image_size=(160, 120),
            template_size=(40, 32),
            template_pattern="xor",
            background_style="noise",
            present=False,
        ),
    ]


def base_cases_smoke() -> List[CaseSpec]:
    return [
        CaseSpec(
            case_id="smoke_translation",
            family="translation",
            image_size=(96, 72),
            template_size=(24, 18),
            template_pattern="xor",
            background_style="flat",
        ),
        CaseSpec(
            case_id="smoke_tinted",
            family="translation",
            image_size=(96, 72),
            template_size=(24, 18),
            template_pattern="rings",
            background_style="gradient",
            tint=(1.0, 0.6, 0.3),
        ),
        CaseSpec(
            case_id="smoke_negative",
            family="negative",
            image_size=(96, 72),
            template_size=(24, 18),
            template_pattern="xor",
            background_style="noise",
            present=False,
        ),
    ]


def base_cases_performance() -> List[CaseSpec]:
    return [
        CaseSpec(
            case_id="perf_large_translation",
            family="performance",
            image_size=(640, 480),
            template_size=(64, 48),
            template_pattern="xor",
            background_style="mixed",
        ),
        CaseSpec(
            case_id="perf_noise_blur",
            family="performance",
            image_size=(480, 360),
            template_size=(80, 60),
            template_pattern="rings",
            background_style="gradient",
            noise_sigma=8.0,
            blur_sigma=0.8,
        ),
    ]


def build_suite(name: str) -> List[CaseSpec]:
    if name == "smoke":
        return base_cases_smoke()
    if name == "standard":
        return base_cases_standard()
    if name == "performance":
        return base_cases_performance()
    raise ValueError(f"unknown suite '{name}'")


def expand_cases(cases: List[CaseSpec], count: int) -> List[CaseSpec]:
    if count <= 1:
        return cases
    expanded = []
    for spec in cases:
        for idx in range(count):
            expanded.append(replace(spec, case_id=f"{spec.case_id}_{idx + 1}"))
    return expanded


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate synthetic PNG cases for PixMatch.",
    )
    parser.add_argument("--out", type=Path, default=Path("synthetic_cases"))
    parser.add_argument("--suite", choices=["smoke", "standard", "performance"], default="standard")
    parser.add_argument("--seed", type=int, default=1337)
    parser.add_argument("--cases-per-family", type=int, default=1)
    parser.add_argument("--overwrite", action="store_true")
    parser.add_argument("--list", action="store_true")
    parser.add_argument("--case", action="append", default=[])
    parser.add_argument("--family", action="append", default=[])
    args = parser.parse_args()

    cases = expand_cases(build_suite(args.suite), args.cases_per_family)
    if args.case:
        wanted = set(args.case)
        cases = [case for case in cases if case.case_id in wanted]
    if args.family:
        wanted = set(args.family)
        cases = [case for case in cases if case.family in wanted]

    if args.list:
        for case in cases:
            print(case.case_id)
        return 0

    out_dir = args.out
    out_dir.mkdir(parents=True, exist_ok=True)

    manifest_cases = []
    for index, spec in enumerate(cases):
        case_dir = out_dir / spec.case_id
        if case_dir.exists():
            if not args.overwrite:
                raise SystemExit(
                    f"{case_dir} already exists. Use --overwrite or choose a new --out."
                )
            shutil.rmtree(case_dir)
        case_dir.mkdir(parents=True, exist_ok=True)
        manifest_cases.append(generate_case(spec, case_dir, args.seed, index))
        print(f"wrote {case_dir}")

    manifest = {
        "suite": args.suite,
        "seed": args.seed,
        "cases_per_family": args.cases_per_family,
        "cases": [entry["case_id"] for entry in manifest_cases],
        "entries": manifest_cases,
    }
    with (out_dir / "manifest.json").open("w", encoding="utf-8") as handle:
        json.dump(manifest, handle, indent=2, sort_keys=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
