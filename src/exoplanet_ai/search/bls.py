"""
Box Least Squares style periodic transit search.

A coarse grid search over trial periods: each period splits the samples into
an in-transit window straddling phase zero and an out-of-transit remainder,
and is scored by ``|depth| * sqrt(n_in_transit)``. This favors deep, well
sampled dips. It is a ranking heuristic, not a calibrated significance.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..data.types import BLSConfig, BLSResult, LightCurve

logger = logging.getLogger(__name__)


def period_grid(time: np.ndarray, config: Optional[BLSConfig] = None) -> np.ndarray:
    """
    Trial periods for a series observed at ``time``.

    The grid holds ``num_periods`` linearly spaced values starting at
    ``min_period`` and stopping one step short of the maximum period,
    ``min(max_period_cap, baseline / baseline_fraction)``. An empty grid is
    returned when the baseline is too short for the minimum period.
    """
    config = config or BLSConfig()

    if len(time) < 2:
        return np.empty(0)

    baseline = float(time[-1] - time[0])
    max_period = min(config.max_period_cap, baseline / config.baseline_fraction)

    if max_period < config.min_period:
        return np.empty(0)

    steps = np.arange(config.num_periods) / config.num_periods
    return config.min_period + (max_period - config.min_period) * steps


def bls_periodogram(
    curve: LightCurve,
    config: Optional[BLSConfig] = None
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Evaluate every trial period of the grid.

    Args:
        curve: Raw or detrended light curve
        config: Search configuration

    Returns:
        Tuple of (periods, depths, scores); periods with an empty partition
        score 0 with depth 0
    """
    config = config or BLSConfig()
    periods = period_grid(curve.time, config)

    if len(periods) == 0:
        return periods, np.empty(0), np.empty(0)

    time = curve.time
    flux = curve.flux
    width = config.transit_phase_width

    phases = np.mod(time[np.newaxis, :], periods[:, np.newaxis]) / periods[:, np.newaxis]
    in_transit = (phases < width) | (phases > 1 - width)

    n_in = in_transit.sum(axis=1)
    n_out = len(flux) - n_in
    sum_in = np.where(in_transit, flux, 0.0).sum(axis=1)
    sum_out = flux.sum() - sum_in

    valid = (n_in > 0) & (n_out > 0)

    with np.errstate(divide='ignore', invalid='ignore'):
        mean_in = sum_in / n_in
        mean_out = sum_out / n_out
        depths = np.where(valid, 1 - mean_in / mean_out, 0.0)
        scores = np.where(valid, np.abs(depths) * np.sqrt(n_in), 0.0)

    # A NaN score never beats the running best
    scores = np.where(np.isnan(scores), 0.0, scores)

    return periods, depths, scores


def calculate_bls(curve: LightCurve, config: Optional[BLSConfig] = None) -> BLSResult:
    """
    Find the trial period whose box transit best explains the flux.

    Args:
        curve: Raw or detrended light curve
        config: Search configuration

    Returns:
        Best (period, depth, score); all zero when no period scores above 0.
        A negative depth marks an upward, non-physical signal.
    """
    periods, depths, scores = bls_periodogram(curve, config)

    if len(periods) == 0:
        logger.debug("Baseline too short for period search (%d samples)", curve.length)
        return BLSResult(period=0.0, depth=0.0, score=0.0)

    # argmax keeps the first (lowest period) maximum on ties
    best = int(np.argmax(scores))

    if not scores[best] > 0:
        return BLSResult(period=0.0, depth=0.0, score=0.0, periods=periods, scores=scores)

    logger.debug(
        "BLS grid [%.3f, %.3f): best period %.4f depth %.6f score %.4f",
        periods[0], periods[-1], periods[best], depths[best], scores[best]
    )

    return BLSResult(
        period=float(periods[best]),
        depth=float(depths[best]),
        score=float(scores[best]),
        periods=periods,
        scores=scores,
    )


def calculate_bls_batch(
    curves: Sequence[LightCurve],
    config: Optional[BLSConfig] = None,
    max_workers: Optional[int] = None
) -> List[BLSResult]:
    """Run ``calculate_bls`` over many curves in a thread pool, keeping order."""
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(lambda curve: calculate_bls(curve, config), curves))
