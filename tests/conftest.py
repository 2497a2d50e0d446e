"""
===========================================================
Shared synthetic data for the test suite
===========================================================
"""

import numpy as np
import pytest

from elli_ransac.distance import EllipseDistance
from elli_ransac.geometry import GeometricParams, ellipse_points


@pytest.fixture
def on_ellipse():
    """(N,2) points sampled on an ellipse (no noise)."""
    def _make(geo: GeometricParams, n: int = 200, t0: float = 0.0, t1: float = 2.0 * np.pi):
        t = np.linspace(t0, t1, n, endpoint=False)
        X, Y = geo.point_for(t)
        return np.column_stack([X, Y])
    return _make


@pytest.fixture
def ring_image():
    """
    Brightness grid with a bright outline: every pixel whose center lies
    within 'band' of the ellipse gets 'value', the rest is 0.
    """
    def _make(geo: GeometricParams, shape=(100, 120), band: float = 1.0, value: float = 1.0):
        H, W = shape
        ys, xs = np.mgrid[0:H, 0:W]
        d = EllipseDistance(geo).distance(xs.ravel() + 0.5, ys.ravel() + 0.5).reshape(H, W)
        return np.where(d <= band, value, 0.0)
    return _make
