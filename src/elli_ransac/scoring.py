"""
===========================================================
elli_ransac.scoring — candidate ellipse evaluation
===========================================================

Two independent ways to score a GeometricParams candidate:
  - point_match_stats()  : inliers by geometric distance + angular coverage
  - image_match_stats()  : brightness sampled along the fitted outline

Both are pure functions of (candidate, data, settings) -> MatchStats.
"""

# --- Imports --------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .distance import EllipseDistance
from .geometry import GeometricParams, as_points
from .image import PixelImage


MAX_SEGMENTS = 200
IMAGE_STEPS = 360


@dataclass(frozen=True)
class MatchStats:
    num_inliers: int = 0            # points within the distance threshold
    outline_coverage: float = 0.0   # fraction of the outline touched, [0, 1]
    match_value: float = 0.0        # summed brightness of matched pixels


# --- Point inliers --------------------------------------------------------

def num_segments(geo: GeometricParams) -> int:
    """
    Angular segments for coverage tracking: roughly one per 4 outline
    pixels, clamped to [1, MAX_SEGMENTS].
    """
    outline_px = int(2.0 * np.pi * max(geo.a, geo.b))
    return min(MAX_SEGMENTS, max(1, outline_px // 4))


def point_match_stats(geo: GeometricParams, points, max_distance: float,
                      step: int = 1, quality: int = 8,
                      distance_factory=EllipseDistance) -> MatchStats:
    """
    Count inliers among every step-th point and the outline coverage they
    produce.

    Parameters
    ----------
    geo : GeometricParams
        Candidate (must be valid).
    points : array-like, shape (N, 2)
        Points to classify.
    max_distance : float
        A point is an inlier when its boundary distance is < max_distance.
    step : int
        Only every step-th point is evaluated.
    quality : int
        Accuracy level handed to the distance oracle.
    distance_factory : callable
        (geo, quality) -> object with nearest(x, y) -> (distance, angle).

    Returns
    -------
    MatchStats
        match_value is always 0 for this strategy.

    Notes
    -----
    Each segment adds 1/segments to the coverage the first time an inlier
    falls into it; more inliers in the same segment add nothing.
    """
    P = as_points(points)[::max(1, int(step))]
    if len(P) == 0:
        return MatchStats()

    oracle = distance_factory(geo, quality)
    res = oracle.nearest(P[:, 0], P[:, 1])
    inliers = np.asarray(res.distance) < max_distance
    n_in = int(inliers.sum())
    if n_in == 0:
        return MatchStats()

    segments = num_segments(geo)
    deg = np.floor(np.degrees(np.asarray(res.angle)[inliers])) % 360.0
    seg = (deg.astype(int) * segments) // 360
    covered = np.unique(seg).size
    return MatchStats(num_inliers=n_in, outline_coverage=covered / segments)


# --- Image brightness -----------------------------------------------------

def image_match_stats(geo: GeometricParams, image: PixelImage, threshold: float,
                      steps: int = IMAGE_STEPS) -> MatchStats:
    """
    Sample 'steps' equally spaced outline points and read the image there.

    Samples outside the image are skipped. A sample with brightness ≥
    threshold adds one step to the coverage and its brightness to the
    match value (brighter = better match). Coverage is divided by 'steps',
    so outline parts outside the image lower the reachable coverage.
    """
    t = 2.0 * np.pi * np.arange(steps) / steps
    x, y = geo.point_for(t)
    inside = np.asarray(image.contains(x, y), bool)
    if not inside.any():
        return MatchStats()

    vals = np.asarray(image.get(x[inside], y[inside]), float)
    hit = vals >= threshold
    return MatchStats(num_inliers=int(hit.sum()),
                      outline_coverage=float(hit.sum()) / steps,
                      match_value=float(vals[hit].sum()))
