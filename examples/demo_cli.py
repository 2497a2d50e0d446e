"""
===========================================================
Robust Ellipse Demo (CLI version)
===========================================================

Usage
-----
    python3 examples/demo_cli.py path/to/outline_grid.csv [threshold]

The CSV holds a brightness grid (rows = y) with a bright, possibly broken
and noisy elliptical outline. Bright pixels become RANSAC candidates; the
point-inlier and the image-brightness estimators both run on them.
"""

# --- Imports --------------------------------------------------------------

import logging
import sys
from pathlib import Path
import numpy as np
from elli_ransac import (load_brightness_image, bright_pixels, RansacConfig, PixelRansacConfig,
                         RansacEstimator, RansacPixelEstimator)


# --- Main routine ---------------------------------------------------------

def _describe(name, res):
    g = res.geometric
    if not res.accepted:
        return f"{name}: no match ({res.num_trials} trials, {res.num_rejected} rejected)"
    return (f"{name}: center=({g.cx:.2f},{g.cy:.2f}), a={g.a:.2f}, b={g.b:.2f}, "
            f"θ={np.degrees(g.angle):.2f}°, inliers={res.stats.num_inliers}, "
            f"coverage={res.stats.outline_coverage:.2f}, match={res.stats.match_value:.1f}")


def main(argv=None):
    argv = argv or sys.argv[1:]
    if len(argv) not in (1, 2):
        print("Usage: demo_cli.py path/to/file.csv [threshold]")
        return 1
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    threshold = float(argv[1]) if len(argv) == 2 else 0.5
    img = load_brightness_image(Path(argv[0]))
    pts = bright_pixels(img, threshold)
    if len(pts) < 6:
        print(f"Only {len(pts)} bright pixels, need ≥ 6.")
        return 2

    res_pts = RansacEstimator(RansacConfig(num_trials=128, seed=0)).estimate(pts)
    res_img = RansacPixelEstimator(PixelRansacConfig(num_trials=128, threshold=threshold, seed=0)).estimate(pts, img)

    print(_describe("points", res_pts))
    print(_describe("image ", res_img))
    return 0 if (res_pts.accepted or res_img.accepted) else 3


# --- Entrypoint -----------------------------------------------------------

if __name__ == "__main__":
    raise SystemExit(main())
