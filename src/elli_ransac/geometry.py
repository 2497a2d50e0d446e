"""
===========================================================
elli_ransac.geometry — geometric ellipse form & point helpers
===========================================================

Center / semi-axes / rotation representation of an ellipse, plus the
small helpers every other module relies on:
  - as_points()       : validate & convert any (N,2) array-like to float64
  - GeometricParams   : (cx, cy, a, b, angle) with NaN-detectable validity
  - ellipse_points()  : sample points on an ellipse (no plotting)

Conventions
-----------
- Orientation normalized (a ≥ b, angle ∈ [-π/2, π/2))
- Parametric boundary: p(t) = c + R(angle) · (a·cos t, b·sin t)
"""

# --- Imports --------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


# --- Point helpers --------------------------------------------------------

def as_points(points) -> np.ndarray:
    """
    Convert an (N,2) array-like of any numeric type to a float64 array.

    All linear algebra downstream runs in float64, whatever the caller's
    coordinate type (int pixel indices, float32 detections, ...).
    """
    P = np.asarray(points, dtype=float)
    if P.ndim != 2 or P.shape[1] != 2:
        raise ValueError(f"Expected points shape (N, 2) but got {P.shape}")
    return P


def _normalize_axes_angle(a: float, b: float, theta: float):
    """
    Ensure a ≥ b and wrap θ into [-π/2, π/2).
    """
    if b > a:
        a, b = b, a
        theta += np.pi / 2.0
    theta = (theta + np.pi / 2.0) % np.pi - np.pi / 2.0
    return a, b, theta


# --- Geometric form -------------------------------------------------------

@dataclass(frozen=True)
class GeometricParams:
    cx: float = 0.0
    cy: float = 0.0
    a: float = float("nan")       # semi-major axis
    b: float = float("nan")       # semi-minor axis
    angle: float = 0.0            # rotation of the major axis (radians)

    @classmethod
    def canonical(cls, cx: float, cy: float, a: float, b: float, angle: float) -> "GeometricParams":
        """Build with a ≥ b and angle wrapped to [-π/2, π/2) (NaN axes kept as-is)."""
        if np.isfinite(a) and np.isfinite(b):
            a, b, angle = _normalize_axes_angle(a, b, angle)
        return cls(float(cx), float(cy), float(a), float(b), float(angle))

    @property
    def center(self) -> tuple[float, float]: return (self.cx, self.cy)

    @property
    def is_valid(self) -> bool:
        """False when an axis is NaN (degenerate source conic) or non-positive."""
        return bool(np.isfinite(self.a) and np.isfinite(self.b) and self.a > 0 and self.b > 0)

    @property
    def ratio(self) -> float:
        """Aspect ratio a / b (≥ 1 for canonical params)."""
        return self.a / self.b if self.b != 0 else float("inf")

    @property
    def size(self) -> float:
        return self.a + self.b

    def point_for(self, t):
        """
        Point(s) on the boundary for parametric angle(s) t (radians).

        Returns
        -------
        x, y : float or np.ndarray
            Same shape as t.
        """
        t = np.asarray(t, float)
        X = self.a * np.cos(t)
        Y = self.b * np.sin(t)
        c, s = np.cos(self.angle), np.sin(self.angle)
        return self.cx + c * X - s * Y, self.cy + s * X + c * Y


# --- Sampling -------------------------------------------------------------

def ellipse_points(geo: GeometricParams, n: int = 400):
    """
    Generate n sampled points on the ellipse (no plotting).
    """
    t = np.linspace(0.0, 2.0 * np.pi, n)
    return geo.point_for(t)
