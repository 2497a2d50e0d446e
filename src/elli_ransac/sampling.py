"""
===========================================================
elli_ransac.sampling — random sample iterator for RANSAC
===========================================================
"""

from __future__ import annotations

import numpy as np

from .geometry import as_points


class RandomSampleIterator:
    """
    Wraps a point collection and holds one random subset of fixed size.

    randomize() draws a new subset; iterating yields exactly the points of
    the current subset. Draws are without replacement unless the pool has
    fewer points than requested.

    Parameters
    ----------
    points : array-like, shape (N, 2)
        The candidate pool.
    num_samples : int
        Subset size.
    rng : np.random.Generator | int | None
        Generator or seed (np.random.default_rng semantics).
    """

    def __init__(self, points, num_samples: int, rng=None) -> None:
        self.points = as_points(points)
        if num_samples < 1:
            raise ValueError("num_samples must be ≥ 1")
        if len(self.points) == 0:
            raise ValueError("Cannot sample from an empty point set.")
        self.num_samples = int(num_samples)
        self.rng = np.random.default_rng(rng)
        self._idx = np.arange(min(self.num_samples, len(self.points)))

    def randomize(self) -> None:
        n = len(self.points)
        replace = n < self.num_samples
        self._idx = self.rng.choice(n, size=self.num_samples, replace=replace)

    @property
    def sample(self) -> np.ndarray:
        return self.points[self._idx]

    def __len__(self) -> int:
        return len(self._idx)

    def __iter__(self):
        for i in self._idx:
            yield self.points[i]
