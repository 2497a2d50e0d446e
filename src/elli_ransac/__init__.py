"""
===========================================================
elli_ransac — robust ellipse estimation
===========================================================

NumPy-based toolkit for recovering an ellipse from noisy 2D points,
optionally matched against a brightness image, with a quality score.

Main entry points
-----------------
- fit_conic(points) / fit_ellipse(points)
- to_geometric(conic)
- RansacEstimator(config).estimate(candidates, all_points)
- RansacPixelEstimator(config).estimate(candidates, image)
- SimplePixelEstimator(threshold).estimate(points, image)
- fit_ellipse_remove_worst(points)

Typical workflow
----------------
    from elli_ransac import *
    img = load_brightness_image("grid.csv")
    pts = bright_pixels(img)
    res = RansacEstimator(RansacConfig(num_trials=128)).estimate(pts)
    if res.accepted:
        print(res.geometric, res.stats)
"""

# --- Public Imports -------------------------------------------------------

from .config import (
    RansacBaseConfig, RansacConfig, PixelRansacConfig, load_ransac_config, load_pixel_config,
)
from .conic import ConicParams, fit_conic, fit_ellipse, fix_f, get_error, to_geometric
from .distance import EllipseDistance, DistanceResult
from .estimator import (
    EstimationResult, TrimResult, RansacEstimator, RansacPixelEstimator,
    SimplePixelEstimator, fit_ellipse_remove_worst,
)
from .geometry import GeometricParams, as_points, ellipse_points
from .image import BrightnessImage, PixelImage
from .io import load_brightness_image, load_points_csv, bright_pixels
from .sampling import RandomSampleIterator
from .scoring import MatchStats, point_match_stats, image_match_stats, num_segments

__all__ = [
    "RansacBaseConfig", "RansacConfig", "PixelRansacConfig", "load_ransac_config", "load_pixel_config",
    "ConicParams", "fit_conic", "fit_ellipse", "fix_f", "get_error", "to_geometric",
    "EllipseDistance", "DistanceResult",
    "EstimationResult", "TrimResult", "RansacEstimator", "RansacPixelEstimator",
    "SimplePixelEstimator", "fit_ellipse_remove_worst",
    "GeometricParams", "as_points", "ellipse_points",
    "BrightnessImage", "PixelImage",
    "load_brightness_image", "load_points_csv", "bright_pixels",
    "RandomSampleIterator",
    "MatchStats", "point_match_stats", "image_match_stats", "num_segments",
]
