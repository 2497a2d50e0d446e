"""
===========================================================
elli_ransac.config — RANSAC settings (dataclasses + TOML)
===========================================================

  - RansacBaseConfig   : knobs shared by both RANSAC variants
  - RansacConfig       : + point-inlier knobs (match rate, distance, ...)
  - PixelRansacConfig  : + brightness threshold
  - load_ransac_config() / load_pixel_config() : read one TOML section

Unknown keys in a TOML section are a configuration error.
"""

# --- Imports --------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import tomli


# --- Settings -------------------------------------------------------------

@dataclass
class RansacBaseConfig:
    """
    Set once, read-only during a run. Optional bounds: None = not enforced.
    """
    num_trials: int = 64                # number of RANSAC trials
    num_samples: int = 6 + 4            # 6 suffice, a few more is more stable for thick borders
    min_coverage: float = 0.5           # fraction of the outline that must be covered
    # Size (a + b) and aspect ratio (a / b ≥ 1) bounds
    min_size: Optional[float] = None
    max_size: Optional[float] = None
    min_ratio: Optional[float] = None
    max_ratio: Optional[float] = None
    # Degenerate samples are redrawn; cap the redraws (None = 10 × num_trials)
    max_degenerate: Optional[int] = None
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.num_trials < 1:
            raise ValueError("num_trials must be ≥ 1")
        if self.num_samples < 6:
            raise ValueError("num_samples must be ≥ 6 (6 unknowns up to scale)")
        _check_rate("min_coverage", self.min_coverage)
        _check_bounds("size", self.min_size, self.max_size)
        _check_bounds("ratio", self.min_ratio, self.max_ratio)
        if self.max_degenerate is not None and self.max_degenerate < 0:
            raise ValueError("max_degenerate must be ≥ 0")

    @property
    def degenerate_budget(self) -> int:
        if self.max_degenerate is None:
            return 10 * self.num_trials
        return self.max_degenerate


@dataclass
class RansacConfig(RansacBaseConfig):
    """
    Point-inlier RANSAC: candidates are scored by their inliers.
    """
    min_match_rate: float = 0.5         # fraction of the given points that must be inliers
    max_distance: float = 1.75          # max point-to-outline distance of an inlier
    step: int = 1                       # score only every step-th point
    distance_quality: int = 8           # accuracy of the distance oracle

    def __post_init__(self) -> None:
        super().__post_init__()
        _check_rate("min_match_rate", self.min_match_rate)
        if self.step < 1:
            raise ValueError("step must be ≥ 1")
        if self.distance_quality < 1:
            raise ValueError("distance_quality must be ≥ 1")


@dataclass
class PixelRansacConfig(RansacBaseConfig):
    """
    RANSAC matched against bright pixels of an image.
    """
    threshold: float = 0.5              # pixels ≥ threshold count as ellipse pixels


def _check_rate(name: str, v: float) -> None:
    if not 0.0 <= v <= 1.0:
        raise ValueError(f"{name} must lie in [0, 1], got {v}")


def _check_bounds(name: str, lo: Optional[float], hi: Optional[float]) -> None:
    if lo is not None and lo < 0:
        raise ValueError(f"min_{name} must be ≥ 0")
    if lo is not None and hi is not None and lo > hi:
        raise ValueError(f"min_{name} ({lo}) > max_{name} ({hi})")


# --- TOML -----------------------------------------------------------------

def _toml_to_kwargs(cls, raw: Dict[str, Any]) -> Dict[str, Any]:
    """Keep known keys only; unknown keys are a configuration error."""
    known = {f.name for f in fields(cls)}
    unknown = set(raw) - known
    if unknown:
        raise ValueError(f"Unknown {cls.__name__} keys: {sorted(unknown)}")
    return dict(raw)


def load_ransac_config(path: Path, section: str = "ransac") -> RansacConfig:
    with Path(path).open("rb") as f:
        raw = tomli.load(f)[section]
    return RansacConfig(**_toml_to_kwargs(RansacConfig, raw))


def load_pixel_config(path: Path, section: str = "ransac_pixel") -> PixelRansacConfig:
    with Path(path).open("rb") as f:
        raw = tomli.load(f)[section]
    return PixelRansacConfig(**_toml_to_kwargs(PixelRansacConfig, raw))
