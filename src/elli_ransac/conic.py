"""
===========================================================
elli_ransac.conic — algebraic conic fit & geometric conversion
===========================================================

Implements the closed-form part of the library:
  - fit_conic()      : homogeneous least squares via SVD (6 coefficients)
  - fix_f()          : sign convention (F ≥ 0, curve unchanged)
  - get_error()      : algebraic residual A·x² + B·xy + C·y² + D·x + E·y + F
  - to_geometric()   : closed-form center / axes / rotation
  - fit_ellipse()    : fit_conic() + to_geometric()

A point (x, y) lies on the conic (A, B, C, D, E, F) iff

    A·x² + B·xy + C·y² + D·x + E·y + F = 0

so every input point contributes one row (x², xy, y², x, y, 1) to the
design matrix; the coefficients with the lowest overall residual are the
right-singular vector of the smallest singular value.

Notes
-----
- No coordinate normalization is applied before the SVD: points far from
  the origin condition the system poorly.
- Nothing here raises on degenerate data. Collinear or otherwise
  degenerate sets still yield a 6-vector; their geometric form carries NaN
  axes which callers must check (GeometricParams.is_valid).
"""

# --- Imports --------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .geometry import GeometricParams, as_points


# Relative discriminant bound below which a conic counts as an ellipse.
# B² - 4AC is compared against A² + B² + C², which is independent of the
# coordinate scale and only depends on the aspect ratio.
_ELLIPSE_EPS = 1e-9
# Unit-norm conics with a vanishing quadratic part are lines, whatever the
# rounding noise in B² - 4AC says.
_QUAD_EPS = 1e-24


# --- Canonical form -------------------------------------------------------

@dataclass(frozen=True)
class ConicParams:
    A: float = 0.0
    B: float = 0.0
    C: float = 0.0
    D: float = 0.0
    E: float = 0.0
    F: float = 1.0

    @classmethod
    def from_vector(cls, vec) -> "ConicParams":
        """
        Build the canonical form from any nonzero 6-vector: unit norm, then
        F ≥ 0. Multiplying vec by a nonzero constant gives the same result.
        """
        v = np.asarray(vec, float).ravel()
        if v.size != 6:
            raise ValueError(f"Expected 6 conic coefficients but got {v.size}")
        n = float(np.linalg.norm(v))
        if n > 0.0:
            v = v / n
        return fix_f(cls(*(float(c) for c in v)))

    def as_vector(self) -> np.ndarray:
        return np.array([self.A, self.B, self.C, self.D, self.E, self.F], float)

    @property
    def discriminant(self) -> float:
        return self.B * self.B - 4.0 * self.A * self.C

    @property
    def is_ellipse(self) -> bool:
        quad = self.A * self.A + self.B * self.B + self.C * self.C
        return bool(quad > _QUAD_EPS and self.discriminant < -_ELLIPSE_EPS * quad)

    def fix_f(self) -> "ConicParams":
        return fix_f(self)

    def get_error(self, x, y):
        return get_error(self, x, y)

    def to_geometric(self) -> GeometricParams:
        return to_geometric(self)


def fix_f(conic: ConicParams) -> ConicParams:
    """
    If F is negative, negate the whole coefficient vector.

    The represented curve does not change; only the sign convention
    (F ≥ 0) is restored. Idempotent.
    """
    if conic.F < 0:
        return ConicParams(*(-conic.as_vector()))
    return conic


def get_error(conic: ConicParams, x, y):
    """
    Algebraic residual of point(s) (x, y) w.r.t. the conic.

    Cheap, non-geometric distance proxy: zero on the curve, sign tells the
    side. Works on scalars and on arrays (broadcast).
    """
    x = np.asarray(x, float); y = np.asarray(y, float)
    r = (conic.A * x * x + conic.B * x * y + conic.C * y * y
         + conic.D * x + conic.E * y + conic.F)
    return float(r) if r.ndim == 0 else r


# --- Direct SVD fit -------------------------------------------------------

def design_matrix(points) -> np.ndarray:
    """One row (x², xy, y², x, y, 1) per point."""
    P = as_points(points)
    x, y = P[:, 0], P[:, 1]
    return np.column_stack([x*x, x*y, y*y, x, y, np.ones_like(x)])


def fit_conic(points) -> ConicParams:
    """
    Homogeneous least-squares fit of the 6 conic coefficients.

    Minimizes Σ (A·xᵢ² + B·xᵢyᵢ + C·yᵢ² + D·xᵢ + E·yᵢ + F)² subject to
    ‖(A..F)‖ = 1. Exact (no iteration).

    Parameters
    ----------
    points : array-like, shape (N, 2)
        N ≥ 6 points, any numeric dtype.

    Returns
    -------
    ConicParams
        Unit-norm, F ≥ 0. Not necessarily an ellipse.
    """
    P = as_points(points)
    if len(P) < 6:
        raise ValueError("Need ≥ 6 points for conic fit.")
    M = design_matrix(P)
    # rows of Vt are the right-singular vectors, singular values descending
    _, _, Vt = np.linalg.svd(M, full_matrices=False)
    return ConicParams.from_vector(Vt[-1])


# --- Geometric conversion -------------------------------------------------

_NAN_GEOMETRIC = GeometricParams(float("nan"), float("nan"), float("nan"), float("nan"), float("nan"))


def to_geometric(conic: ConicParams) -> GeometricParams:
    """
    Closed-form center, semi-axes and rotation of an ellipse conic.

    Returns a GeometricParams with NaN fields when the conic is not a real
    ellipse: discriminant ≥ 0 (parabola, hyperbola, line pairs), F ≤ 0
    after fix_f() (curve through the origin, unrecoverable here), or
    negative axis radicands (imaginary ellipse).
    """
    conic = fix_f(conic)
    A, B, C, D, E, F = conic.as_vector()
    if not (F > 0.0) or not conic.is_ellipse:
        return _NAN_GEOMETRIC

    den = B*B - 4.0*A*C
    # 2 · (A·E² + C·D² - B·D·E + (B² - 4AC)·F) = -8 · det(conic matrix)
    q = 2.0 * (A*E*E + C*D*D - B*D*E + den*F)
    S = np.hypot(A - C, B)
    with np.errstate(invalid="ignore"):
        a = -np.sqrt(q * ((A + C) + S)) / den
        b = -np.sqrt(q * ((A + C) - S)) / den
    if not (a > 0.0 and b > 0.0):
        return _NAN_GEOMETRIC

    cx = (2.0*C*D - B*E) / den
    cy = (2.0*A*E - B*D) / den
    # orientation of the axis belonging to 'a'
    theta = 0.5 * np.arctan2(-B, C - A)
    return GeometricParams.canonical(cx, cy, a, b, theta)


def fit_ellipse(points) -> GeometricParams:
    """
    fit_conic() + to_geometric(). Check .is_valid before use.
    """
    return to_geometric(fit_conic(points))
