"""
===========================================================
elli_ransac.distance — point-to-ellipse distance oracle
===========================================================

Nearest boundary point of an ellipse for a batch of query points.

The query is moved into the ellipse-aligned frame and folded into the
first quadrant (the nearest boundary point of a first-quadrant point lies
in the first quadrant too). The parametric angle t ∈ [0, π/2] is then
found by a split search: sample the bracket, keep the best sample and its
neighbors, repeat 'quality' times. Higher quality = finer angle, more work.

Deterministic for a fixed ellipse, point and quality.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .geometry import GeometricParams


_SPLIT = 8          # samples per bracket and refinement level


@dataclass(frozen=True)
class DistanceResult:
    distance: np.ndarray    # euclidean distance to the nearest boundary point
    angle: np.ndarray       # parametric angle of that point, radians in [-π, π]


class EllipseDistance:
    """
    Distance oracle bound to one ellipse.

    A quality around 7 or 8 is enough for inlier classification at pixel
    scale.
    """

    def __init__(self, geo: GeometricParams, quality: int = 8) -> None:
        if quality < 1:
            raise ValueError("quality must be ≥ 1")
        self.geo = geo
        self.quality = int(quality)

    def nearest(self, x, y) -> DistanceResult:
        geo = self.geo
        x = np.asarray(x, float); y = np.asarray(y, float)
        shape = np.broadcast(x, y).shape
        x = np.broadcast_to(x, shape).ravel()
        y = np.broadcast_to(y, shape).ravel()

        # ellipse-aligned frame
        c, s = np.cos(geo.angle), np.sin(geo.angle)
        u = c * (x - geo.cx) + s * (y - geo.cy)
        v = -s * (x - geo.cx) + c * (y - geo.cy)
        au, av = np.abs(u), np.abs(v)

        lo = np.zeros_like(au)
        hi = np.full_like(au, np.pi / 2.0)
        frac = np.linspace(0.0, 1.0, _SPLIT)
        rows = np.arange(au.size)
        for _ in range(self.quality):
            step = (hi - lo) / (_SPLIT - 1)
            T = lo[:, None] + (hi - lo)[:, None] * frac[None, :]
            d2 = (geo.a * np.cos(T) - au[:, None])**2 + (geo.b * np.sin(T) - av[:, None])**2
            t_best = T[rows, np.argmin(d2, axis=1)]
            lo = np.maximum(0.0, t_best - step)
            hi = np.minimum(np.pi / 2.0, t_best + step)

        t = t_best
        dist = np.hypot(geo.a * np.cos(t) - au, geo.b * np.sin(t) - av)

        # unfold the quadrant
        t = np.where(u < 0, np.pi - t, t)
        t = np.where(v < 0, -t, t)
        return DistanceResult(dist.reshape(shape), t.reshape(shape))

    def distance(self, x, y) -> np.ndarray:
        return self.nearest(x, y).distance
