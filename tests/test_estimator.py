"""
===========================================================
Test suite for elli_ransac.estimator (RANSAC variants & trim)
===========================================================
"""

import logging

import numpy as np
import pytest

from elli_ransac.config import PixelRansacConfig, RansacConfig
from elli_ransac.conic import ConicParams
from elli_ransac.estimator import (RansacEstimator, RansacPixelEstimator, SimplePixelEstimator,
                                   _RansacBase, fit_ellipse_remove_worst)
from elli_ransac.geometry import GeometricParams
from elli_ransac.image import BrightnessImage
from elli_ransac.io import bright_pixels
from elli_ransac.scoring import MatchStats


TRUE = GeometricParams(50.0, 40.0, 30.0, 18.0, np.deg2rad(20))


def _with_outliers(points, m, seed=7):
    rng = np.random.default_rng(seed)
    out = np.column_stack([rng.uniform(0, 100, m), rng.uniform(0, 80, m)])
    return np.vstack([points, out])


def _collinear(n=20):
    x = np.linspace(1.0, 40.0, n)
    return np.column_stack([x, 0.5 * x + 7.0])


# --- Point-inlier RANSAC --------------------------------------------------

def test_ransac_recovers_ellipse_among_outliers(on_ellipse):
    N = 200
    P = _with_outliers(on_ellipse(TRUE, n=N), int(0.3 * N))
    cfg = RansacConfig(num_trials=64, num_samples=10, min_match_rate=0.5)
    res = RansacEstimator(cfg).estimate(P, rng=123)

    assert res.accepted
    g = res.geometric
    assert abs(g.a - TRUE.a) < 0.05 * TRUE.a
    assert abs(g.b - TRUE.b) < 0.05 * TRUE.b
    assert np.isclose(g.cx, TRUE.cx, atol=1.0) and np.isclose(g.cy, TRUE.cy, atol=1.0)
    assert res.stats.num_inliers >= N * cfg.min_match_rate
    assert res.stats.outline_coverage >= cfg.min_coverage
    assert res.num_trials == 64


def test_ransac_scores_against_all_points(on_ellipse):
    """Candidates from one arc only, inliers counted over the whole set."""
    full = on_ellipse(TRUE, n=200)
    arc = full[:80]
    res = RansacEstimator(RansacConfig(num_trials=32)).estimate(arc, all_points=full, rng=1)
    assert res.accepted
    assert res.stats.num_inliers == 200
    assert np.isclose(res.geometric.a, TRUE.a, atol=1e-3)


def test_ransac_no_match(on_ellipse):
    P = _with_outliers(on_ellipse(TRUE, n=30), 170)
    est = RansacEstimator(RansacConfig(num_trials=64, min_match_rate=0.5))
    res = est.estimate(P, rng=5)

    assert not res.accepted
    assert res.stats == MatchStats()
    assert res.stats.num_inliers < est.min_inliers(len(P))
    assert res.conic == ConicParams()
    assert np.isnan(res.geometric.a)
    assert res.num_rejected > 0


def test_collinear_samples_never_selected():
    res = RansacEstimator(RansacConfig(num_trials=8, min_match_rate=0.0, min_coverage=0.0)).estimate(
        _collinear(), rng=0)
    assert not res.accepted
    assert not res.geometric.is_valid
    # redraws first use up the degenerate budget (10 × trials), then count as trials
    assert res.num_degenerate == 88
    assert res.num_trials == 8


def test_degenerate_budget_bounds_the_loop():
    cfg = RansacConfig(num_trials=5, max_degenerate=0)
    res = RansacEstimator(cfg).estimate(_collinear(), rng=0)
    assert res.num_degenerate == 5
    assert res.num_trials == 5


def test_size_and_ratio_bounds_reject(on_ellipse):
    P = on_ellipse(TRUE, n=100)
    for cfg in (RansacConfig(num_trials=10, max_size=10.0),
                RansacConfig(num_trials=10, min_ratio=3.0),
                RansacConfig(num_trials=10, min_size=60.0, max_size=200.0, max_ratio=1.2)):
        res = RansacEstimator(cfg).estimate(P, rng=2)
        assert not res.accepted
        assert res.num_rejected == res.num_trials == 10


def test_bounds_that_hold_accept(on_ellipse):
    P = on_ellipse(TRUE, n=100)
    cfg = RansacConfig(num_trials=10, min_size=40.0, max_size=60.0, min_ratio=1.2, max_ratio=2.0)
    assert RansacEstimator(cfg).estimate(P, rng=2).accepted


def test_set_config_replaces_settings(on_ellipse):
    P = on_ellipse(TRUE, n=100)
    est = RansacEstimator(RansacConfig(num_trials=10))
    assert est.estimate(P, rng=2).accepted
    est.set_config(RansacConfig(num_trials=10, max_size=10.0))
    res = est.estimate(P, rng=2)
    assert not res.accepted
    assert res.num_rejected == 10


def test_estimators_must_implement_hooks():
    with pytest.raises(TypeError):
        _RansacBase()


def test_step_lowers_required_inliers():
    est = RansacEstimator(RansacConfig(step=2, min_match_rate=0.5))
    assert est.min_inliers(200) == 50


def test_ties_keep_first_candidate():
    est = RansacEstimator()
    assert not est._is_better(MatchStats(5, 0.9), MatchStats(5, 0.5))
    assert est._is_better(MatchStats(6, 0.5), MatchStats(5, 0.9))
    pix = RansacPixelEstimator()
    assert not pix._is_better(MatchStats(0, 1.0, 10.0), MatchStats(0, 0.5, 10.0))


def test_seed_makes_runs_reproducible(on_ellipse):
    P = _with_outliers(on_ellipse(TRUE, n=100), 10)
    cfg = RansacConfig(num_trials=20, seed=42)
    r1 = RansacEstimator(cfg).estimate(P)
    r2 = RansacEstimator(cfg).estimate(P)
    assert r1.conic == r2.conic
    assert r1.stats == r2.stats
    assert r1.num_degenerate == r2.num_degenerate


def test_too_few_candidates():
    with pytest.raises(ValueError):
        RansacEstimator().estimate(np.zeros((5, 2)))


def test_summary_is_logged(on_ellipse, caplog):
    with caplog.at_level(logging.INFO, logger="elli_ransac.estimator"):
        RansacEstimator(RansacConfig(num_trials=4)).estimate(on_ellipse(TRUE, n=50), rng=0)
    assert "4 trials" in caplog.text


# --- Image-brightness RANSAC ----------------------------------------------

def test_pixel_ransac_on_outline_image(ring_image):
    geo = GeometricParams(60.0, 50.0, 35.0, 20.0, np.deg2rad(30))
    M = ring_image(geo)
    rng = np.random.default_rng(9)
    M[rng.integers(0, 100, 30), rng.integers(0, 120, 30)] = 1.0
    img = BrightnessImage(M)
    cfg = PixelRansacConfig(num_trials=200, threshold=0.5)

    res = RansacPixelEstimator(cfg).estimate(bright_pixels(img), img, rng=4)

    assert res.accepted
    g = res.geometric
    assert np.isclose(g.cx, 60.0, atol=3.0) and np.isclose(g.cy, 50.0, atol=3.0)
    assert abs(g.a - 35.0) < 0.15 * 35.0
    assert abs(g.b - 20.0) < 0.15 * 20.0
    assert res.stats.outline_coverage >= cfg.min_coverage
    assert res.stats.match_value > 0


def test_pixel_ransac_dark_image_no_match(on_ellipse):
    img = BrightnessImage(np.zeros((100, 120)))
    res = RansacPixelEstimator(PixelRansacConfig(num_trials=16)).estimate(on_ellipse(TRUE, n=60), img, rng=0)
    assert not res.accepted
    assert res.stats.match_value == 0.0
    assert res.num_rejected == res.num_trials


def test_pixel_ransac_ratio_bound(ring_image, on_ellipse):
    img = BrightnessImage(ring_image(TRUE))
    cfg = PixelRansacConfig(num_trials=16, max_ratio=1.1)
    res = RansacPixelEstimator(cfg).estimate(on_ellipse(TRUE, n=60), img, rng=0)
    assert not res.accepted


def test_pixel_set_config_replaces_settings(ring_image, on_ellipse):
    img = BrightnessImage(ring_image(TRUE))
    est = RansacPixelEstimator(PixelRansacConfig(num_trials=16))
    assert est.estimate(on_ellipse(TRUE, n=60), img, rng=0).accepted
    est.set_config(PixelRansacConfig(num_trials=16, max_ratio=1.1))
    assert est.config.max_ratio == 1.1
    assert not est.estimate(on_ellipse(TRUE, n=60), img, rng=0).accepted


def test_simple_pixel_estimator(ring_image, on_ellipse):
    img = BrightnessImage(ring_image(TRUE))
    res = SimplePixelEstimator(threshold=0.5).estimate(on_ellipse(TRUE, n=60), img)
    assert res.accepted
    assert np.isclose(res.stats.outline_coverage, 1.0)
    assert np.isclose(res.geometric.b, TRUE.b, atol=1e-4)

    bad = SimplePixelEstimator().estimate(_collinear(), img)
    assert not bad.accepted and bad.num_degenerate == 1


# --- Iterative trim -------------------------------------------------------

def test_remove_worst_is_monotonic(on_ellipse):
    P = _with_outliers(on_ellipse(TRUE, n=200), 20)
    res = fit_ellipse_remove_worst(P)
    # 220 points: 8 per round, int(33) // 8 = 4 rounds
    assert res.point_counts == (220, 212, 204, 196, 188)
    assert all(b <= a for a, b in zip(res.point_counts, res.point_counts[1:]))
    assert len(res.points) == 188


def test_remove_worst_keeps_exact_fit(on_ellipse):
    res = fit_ellipse_remove_worst(on_ellipse(TRUE, n=100))
    g = res.geometric
    assert np.allclose([g.cx, g.cy, g.a, g.b, g.angle],
                       [TRUE.cx, TRUE.cy, TRUE.a, TRUE.b, TRUE.angle], atol=1e-4)


def test_remove_worst_small_sets(on_ellipse):
    res = fit_ellipse_remove_worst(on_ellipse(TRUE, n=20))
    assert res.point_counts == (20,)
    res = fit_ellipse_remove_worst(on_ellipse(TRUE, n=10), total_fraction=0.9, step_fraction=0.3)
    assert res.point_counts == (10, 7)


def test_remove_worst_always_returns_a_fit():
    res = fit_ellipse_remove_worst(_collinear(50))
    assert isinstance(res.conic, ConicParams)
    assert not res.geometric.is_valid


def test_remove_worst_fraction_check(on_ellipse):
    with pytest.raises(ValueError):
        fit_ellipse_remove_worst(on_ellipse(TRUE, n=50), total_fraction=0.1, step_fraction=0.2)
