"""Pytest fixtures for pixmatch testing."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

import numpy as np
import pytest

from pixmatch import PixelMatrix

# Path to synthetic test cases (relative to repo root)
SYNTHETIC_CASES_DIR = Path(__file__).parent.parent.parent.parent / "synthetic_cases"


@dataclass
class Instance:
    """Ground truth for a template instance."""
    kind: str
    x: int
    y: int


@dataclass
class SyntheticCase:
    """A synthetic test case with ground truth."""
    case_id: str
    family: str
    image_path: Path
    template_path: Path
    meta_path: Path
    cli_config_path: Path
    instances: List[Instance]
    expected_present: bool
    image_size: Tuple[int, int]
    template_size: Tuple[int, int]

    @property
    def targets(self) -> List[Instance]:
        return [inst for inst in self.instances if inst.kind == "target"]


def load_case(case_dir: Path) -> SyntheticCase:
    """Load a synthetic test case from a directory."""
    meta_path = case_dir / "meta.json"
    with open(meta_path) as f:
        meta = json.load(f)

    instances = [
        Instance(kind=inst.get("kind", "target"), x=inst["x"], y=inst["y"])
        for inst in meta.get("instances", [])
    ]

    return SyntheticCase(
        case_id=meta["case_id"],
        family=meta["family"],
        image_path=case_dir / "image.png",
        template_path=case_dir / "template.png",
        meta_path=meta_path,
        cli_config_path=case_dir / "cli_config.json",
        instances=instances,
        expected_present=meta.get("present", True),
        image_size=(meta["image"]["width"], meta["image"]["height"]),
        template_size=(meta["template"]["width"], meta["template"]["height"]),
    )


def discover_cases() -> List[SyntheticCase]:
    """Discover all synthetic test cases."""
    if not SYNTHETIC_CASES_DIR.exists():
        return []

    cases = []
    manifest_path = SYNTHETIC_CASES_DIR / "manifest.json"
    if manifest_path.exists():
        with open(manifest_path) as f:
            manifest = json.load(f)
        case_ids = manifest.get("cases", [])
    else:
        # Fallback: discover all subdirectories
        case_ids = sorted(
            d.name for d in SYNTHETIC_CASES_DIR.iterdir()
            if d.is_dir() and (d / "meta.json").exists()
        )

    for case_id in case_ids:
        case_dir = SYNTHETIC_CASES_DIR / case_id
        if case_dir.is_dir():
            try:
                cases.append(load_case(case_dir))
            except (OSError, KeyError, ValueError) as e:
                print(f"Warning: Failed to load case {case_id}: {e}")
    return cases


@pytest.fixture(scope="session")
def synthetic_cases() -> List[SyntheticCase]:
    """All available synthetic test cases."""
    return discover_cases()


@pytest.fixture(params=discover_cases() or [None], ids=lambda c: c.case_id if c else "none")
def synthetic_case(request) -> SyntheticCase:
    """Parametrized fixture for each synthetic test case."""
    if request.param is None:
        pytest.skip("no synthetic cases; run tools/synth_cases/generate_cases.py")
    return request.param


def solid(width: int, height: int, color) -> PixelMatrix:
    """Matrix with every pixel set to ``color``."""
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[...] = color
    return PixelMatrix(pixels)


def random_matrix(rng: np.random.Generator, width: int, height: int) -> PixelMatrix:
    return PixelMatrix(rng.integers(0, 256, (height, width, 4), dtype=np.uint8))


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1337)


@pytest.fixture
def colorful(rng) -> PixelMatrix:
    """A 7x5 matrix of random colors with varying alpha."""
    return random_matrix(rng, 7, 5)


# Tolerance settings for validation
POSITION_TOLERANCE_PX = 1
MIN_SCORE_THRESHOLD = 900  # similarity, 0..1000


def assert_match_close(result, expected: Instance, pos_tol: int = POSITION_TOLERANCE_PX):
    """Assert that a match result is close to expected ground truth."""
    dx = abs(result.x - expected.x)
    dy = abs(result.y - expected.y)

    assert dx <= pos_tol, f"x error: {dx} > {pos_tol} (got {result.x}, expected {expected.x})"
    assert dy <= pos_tol, f"y error: {dy} > {pos_tol} (got {result.y}, expected {expected.y})"
