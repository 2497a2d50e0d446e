"""
===========================================================
elli_ransac.image — pixel-sampleable brightness image
===========================================================

The image-brightness scoring only needs three operations from an image:
a bounds test, a raw lookup and a clamped lookup. Anything implementing
the PixelImage protocol can be scored against; BrightnessImage is the
NumPy-backed default (values roughly in [0, 1]).

Coordinates are (x, y) = (column, row), x right, y down; float
coordinates are truncated to the containing pixel.
"""

from __future__ import annotations

from typing import Protocol

import numpy as np


class PixelImage(Protocol):
    """
    What image_match_stats() needs from an image.

    All three methods are called with x and y as float ndarrays of the same
    shape (one entry per outline sample) and must be vectorized: they return
    an ndarray of that shape, bool for contains(), float for the lookups.
    get() is only called where contains() is True.
    """
    width: int
    height: int

    def contains(self, x: np.ndarray, y: np.ndarray) -> np.ndarray: ...

    def get(self, x: np.ndarray, y: np.ndarray) -> np.ndarray: ...

    def get_clamped(self, x: np.ndarray, y: np.ndarray) -> np.ndarray: ...


class BrightnessImage:
    def __init__(self, data) -> None:
        M = np.asarray(data, dtype=float)
        if M.ndim != 2:
            raise ValueError("BrightnessImage expects a 2D array")
        self.data = M
        self.height, self.width = M.shape

    def contains(self, x, y):
        """True where (x, y) falls on a pixel. Vectorized."""
        x = np.asarray(x, float); y = np.asarray(y, float)
        inside = (x >= 0) & (y >= 0) & (x < self.width) & (y < self.height)
        return bool(inside) if inside.ndim == 0 else inside

    def get(self, x, y):
        """Raw lookup. Caller guarantees contains(x, y)."""
        xi = np.asarray(x, float).astype(int)
        yi = np.asarray(y, float).astype(int)
        v = self.data[yi, xi]
        return float(v) if np.ndim(v) == 0 else v

    def get_clamped(self, x, y):
        """Lookup with coordinates clamped onto the border pixels."""
        xi = np.clip(np.asarray(x, float).astype(int), 0, self.width - 1)
        yi = np.clip(np.asarray(y, float).astype(int), 0, self.height - 1)
        v = self.data[yi, xi]
        return float(v) if np.ndim(v) == 0 else v

    def __repr__(self) -> str:
        return f"BrightnessImage({self.width}x{self.height})"
