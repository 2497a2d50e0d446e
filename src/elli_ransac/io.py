from pathlib import Path
import numpy as np

from .image import BrightnessImage


def load_brightness_image(path: str, delimiter: str = ",", skiprows: int = 0) -> BrightnessImage:
    """
    Load a numeric 2D grid (CSV) as a brightness image.

    Parameters
    ----------
    path : str
        CSV file path. Rows are image rows (y), columns are x.
    delimiter : str
        CSV delimiter (default ",").
    skiprows : int
        Number of initial rows to skip (useful if the CSV has a header line).
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"File not found: {p}")
    return BrightnessImage(np.loadtxt(p, delimiter=delimiter, skiprows=skiprows, ndmin=2))


def load_points_csv(path: str, delimiter: str = ",", skiprows: int = 1) -> np.ndarray:
    """
    Load paired (x, y) coordinates from a CSV.

    Parameters
    ----------
    path : str
        CSV file path with two columns.
    skiprows : int
        Header lines to skip (default 1, matching an "x,y" header).

    Returns
    -------
    np.ndarray, shape (N, 2)
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"File not found: {p}")
    P = np.loadtxt(p, delimiter=delimiter, skiprows=skiprows, ndmin=2)
    if P.shape[1] != 2:
        raise ValueError(f"Expected 2 columns (x, y) but got {P.shape[1]}")
    return P


def bright_pixels(image: BrightnessImage, threshold: float = 0.5) -> np.ndarray:
    """
    Pixel centers (x, y) of all pixels ≥ threshold, as (N, 2) candidates.
    """
    i, j = np.where(image.data >= threshold)
    return np.column_stack([j.astype(float) + 0.5, i.astype(float) + 0.5])
