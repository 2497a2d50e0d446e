"""
===========================================================
elli_ransac.estimator — robust ellipse estimation
===========================================================

Estimators built on top of fit_conic() / to_geometric():
  - RansacEstimator        : random subsets, scored by point inliers
  - RansacPixelEstimator   : random subsets, scored by image brightness
  - SimplePixelEstimator   : one fit on all points, scored by brightness
  - fit_ellipse_remove_worst() : deterministic trim-worst-and-refit

Per run:  INIT -> (SAMPLE -> FIT -> VALIDATE -> SCORE -> [UPDATE-BEST])* -> DONE

VALIDATE
--------
- F ≤ 0 or NaN semi-axis      : degenerate sample, redrawn without using
                                up a trial (bounded by max_degenerate)
- size / ratio bound violated : trial spent, candidate dropped
- coverage / match rate low   : trial spent, candidate dropped

No match is not an error: the result then holds the default conic, NaN
geometric form, zero MatchStats and accepted=False.
"""

# --- Imports --------------------------------------------------------------

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .config import PixelRansacConfig, RansacBaseConfig, RansacConfig
from .conic import ConicParams, fit_conic, to_geometric
from .distance import EllipseDistance
from .geometry import GeometricParams, as_points
from .sampling import RandomSampleIterator
from .scoring import MatchStats, image_match_stats, point_match_stats

logger = logging.getLogger(__name__)


# --- Results --------------------------------------------------------------

@dataclass(frozen=True)
class EstimationResult:
    conic: ConicParams = field(default_factory=ConicParams)
    geometric: GeometricParams = field(default_factory=lambda: to_geometric(ConicParams()))
    stats: MatchStats = field(default_factory=MatchStats)
    accepted: bool = False
    # diagnostics
    num_trials: int = 0         # trials spent (degenerate redraws excluded)
    num_degenerate: int = 0     # samples redrawn because of F ≤ 0 / NaN axes
    num_rejected: int = 0       # trials dropped by a size/ratio/coverage/match constraint


@dataclass(frozen=True)
class TrimResult:
    conic: ConicParams
    geometric: GeometricParams
    points: np.ndarray          # points left after trimming
    point_counts: tuple         # number of points used by each fit, in order


@dataclass
class _Diagnostics:
    trials: int = 0
    degenerate: int = 0
    rejected: int = 0


# --- Shared RANSAC loop ---------------------------------------------------

def _violates_bounds(geo: GeometricParams, config: RansacBaseConfig) -> bool:
    ratio = geo.ratio
    if config.min_ratio is not None and ratio < config.min_ratio:
        return True
    if config.max_ratio is not None and ratio > config.max_ratio:
        return True
    size = geo.size
    if config.min_size is not None and size < config.min_size:
        return True
    if config.max_size is not None and size > config.max_size:
        return True
    return False


def _sample_candidates(config: RansacBaseConfig, points: np.ndarray, rng, diag: _Diagnostics):
    """
    Yield (conic, geo) for every trial that survives VALIDATE.

    Degenerate samples do not count as a trial until the redraw budget is
    used up; from then on they do, so the loop always terminates.
    """
    it = RandomSampleIterator(points, config.num_samples, rng)
    budget = config.degenerate_budget

    while diag.trials < config.num_trials:
        it.randomize()
        conic = fit_conic(it.sample)
        geo = to_geometric(conic)

        if not conic.F > 0 or np.isnan(geo.a) or np.isnan(geo.b):
            diag.degenerate += 1
            if diag.degenerate > budget:
                diag.trials += 1
            logger.debug(f"degenerate sample #{diag.degenerate} (F={conic.F:.3g}, a={geo.a}, b={geo.b})")
            continue

        diag.trials += 1
        if _violates_bounds(geo, config):
            diag.rejected += 1
            logger.debug(f"trial {diag.trials}: size/ratio bound violated (a={geo.a:.2f}, b={geo.b:.2f})")
            continue

        yield conic, geo


class _RansacBase(ABC):
    """
    Fold over the trial candidates with a pure comparison: the best slot is
    replaced only by an acceptable candidate that is strictly better.
    """

    config: RansacBaseConfig

    @abstractmethod
    def _acceptable(self, stats: MatchStats, ctx) -> bool:
        ...

    @abstractmethod
    def _is_better(self, stats: MatchStats, best: MatchStats) -> bool:
        ...

    @abstractmethod
    def _score(self, geo: GeometricParams, ctx) -> MatchStats:
        ...

    def _run(self, candidates, ctx, rng) -> EstimationResult:
        P = as_points(candidates)
        if len(P) < 6:
            raise ValueError("Need ≥ 6 candidate points for RANSAC.")
        if rng is None:
            rng = self.config.seed

        diag = _Diagnostics()
        best_conic, best_geo, best_stats = ConicParams(), None, MatchStats()
        accepted = False

        for conic, geo in _sample_candidates(self.config, P, rng, diag):
            stats = self._score(geo, ctx)
            if not self._acceptable(stats, ctx):
                diag.rejected += 1
                logger.debug(f"trial {diag.trials}: rejected {stats}")
                continue
            if not self._is_better(stats, best_stats):
                continue
            best_conic, best_geo, best_stats = conic, geo, stats
            accepted = True
            logger.debug(f"trial {diag.trials}: new best {stats}")

        logger.info(
            f"{type(self).__name__}: {diag.trials} trials, {diag.degenerate} degenerate, "
            f"{diag.rejected} rejected, accepted={accepted}"
        )
        return EstimationResult(
            conic=best_conic,
            geometric=best_geo if accepted else to_geometric(best_conic),
            stats=best_stats,
            accepted=accepted,
            num_trials=diag.trials,
            num_degenerate=diag.degenerate,
            num_rejected=diag.rejected,
        )


# --- Point-inlier RANSAC --------------------------------------------------

class RansacEstimator(_RansacBase):
    """
    Estimate an ellipse from random subsets of 'candidates', scoring each
    candidate by its inliers among 'all_points'.

    A candidate is accepted when it has at least
    int(min_match_rate · len(all_points) / step) inliers and covers at
    least min_coverage of its outline; among accepted candidates the one
    with most inliers wins (first found on ties).
    """

    def __init__(self, config: Optional[RansacConfig] = None, distance_factory=EllipseDistance) -> None:
        self.config = config if config is not None else RansacConfig()
        self.distance_factory = distance_factory

    def set_config(self, config: RansacConfig) -> None:
        self.config = config

    def min_inliers(self, num_points: int) -> int:
        return int(self.config.min_match_rate * num_points / self.config.step)

    def _score(self, geo, ctx):
        all_points, _ = ctx
        cfg = self.config
        return point_match_stats(geo, all_points, cfg.max_distance, step=cfg.step,
                                 quality=cfg.distance_quality,
                                 distance_factory=self.distance_factory)

    def _acceptable(self, stats, ctx):
        _, min_inliers = ctx
        return (stats.num_inliers >= min_inliers
                and stats.outline_coverage >= self.config.min_coverage)

    def _is_better(self, stats, best):
        return stats.num_inliers > best.num_inliers

    def estimate(self, candidates, all_points=None, rng=None) -> EstimationResult:
        """
        Parameters
        ----------
        candidates : array-like, shape (N, 2)
            Pool the random subsets are drawn from (N ≥ 6).
        all_points : array-like, shape (M, 2), optional
            Points used for scoring; defaults to candidates.
        rng : np.random.Generator | int | None
            Random source; falls back to config.seed.
        """
        A = as_points(candidates if all_points is None else all_points)
        return self._run(candidates, (A, self.min_inliers(len(A))), rng)


# --- Image-brightness RANSAC ----------------------------------------------

class RansacPixelEstimator(_RansacBase):
    """
    Estimate an ellipse from random subsets of 'candidates', matching each
    candidate's outline against bright pixels of 'image'.

    A candidate is accepted when its outline coverage reaches
    min_coverage; among accepted candidates the highest match value wins.
    """

    def __init__(self, config: Optional[PixelRansacConfig] = None) -> None:
        self.config = config if config is not None else PixelRansacConfig()

    def set_config(self, config: PixelRansacConfig) -> None:
        self.config = config

    def _score(self, geo, image):
        return image_match_stats(geo, image, self.config.threshold)

    def _acceptable(self, stats, image):
        return stats.outline_coverage >= self.config.min_coverage

    def _is_better(self, stats, best):
        return stats.match_value > best.match_value

    def estimate(self, candidates, image, rng=None) -> EstimationResult:
        return self._run(candidates, image, rng)


class SimplePixelEstimator:
    """
    One SVD fit on all points, scored against the image. No resampling and
    no acceptance constraints; accepted only reflects a valid geometry.
    """

    def __init__(self, threshold: float = 0.5) -> None:
        self.threshold = threshold

    def estimate(self, points, image) -> EstimationResult:
        conic = fit_conic(points)
        geo = to_geometric(conic)
        if not geo.is_valid:
            return EstimationResult(conic=conic, geometric=geo, num_trials=1, num_degenerate=1)
        stats = image_match_stats(geo, image, self.threshold)
        return EstimationResult(conic=conic, geometric=geo, stats=stats, accepted=True, num_trials=1)


# --- Iterative trim -------------------------------------------------------

def fit_ellipse_remove_worst(points, total_fraction: float = 0.15,
                             step_fraction: float = 0.04) -> TrimResult:
    """
    Deterministic outlier suppression: fit, drop the points with the largest
    algebraic residual, refit, until total_fraction of the points is gone.

    Parameters
    ----------
    points : array-like, shape (N, 2)
        N ≥ 6 points.
    total_fraction : float
        Fraction of the original points removed in total.
    step_fraction : float
        Fraction of the original points removed per round.

    Returns
    -------
    TrimResult
        The last refit, possibly degenerate (check geometric.is_valid).

    Notes
    -----
    int(N·total_fraction) // int(N·step_fraction) rounds are run; with
    fewer than 1/step_fraction points no point is dropped and the plain fit
    is returned. Trimming stops before fewer than 6 points would remain.
    """
    if not 0.0 <= step_fraction <= total_fraction <= 1.0:
        raise ValueError("Need 0 ≤ step_fraction ≤ total_fraction ≤ 1.")
    P = as_points(points)
    n = len(P)
    to_remove = int(n * total_fraction)
    per_run = int(n * step_fraction)
    rounds = to_remove // per_run if per_run > 0 else 0

    conic = fit_conic(P)
    counts = [n]
    for _ in range(rounds):
        if len(P) - per_run < 6:
            break
        err = np.abs(conic.get_error(P[:, 0], P[:, 1]))
        # stable sort keeps the input order among equal residuals
        keep = np.sort(np.argsort(err, kind="stable")[:len(P) - per_run])
        P = P[keep]
        conic = fit_conic(P)
        counts.append(len(P))

    logger.debug(f"remove-worst: {n} -> {len(P)} points in {len(counts) - 1} rounds")
    return TrimResult(conic=conic, geometric=to_geometric(conic), points=P, point_counts=tuple(counts))
