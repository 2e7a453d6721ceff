"""
Phase-folding of light curves for visualization and vetting.
"""

from typing import Tuple

import numpy as np
from scipy.stats import binned_statistic

from ..data.types import LightCurve


def compute_phases(time: np.ndarray, period: float, epoch: float = 0.0) -> np.ndarray:
    """Phase of each timestamp in [0, 1) for the given period and epoch."""
    if period <= 0:
        raise ValueError("Period must be positive")

    phases = np.mod(np.asarray(time, dtype=np.float64) - epoch, period) / period
    # Rounding in np.mod can land exactly on the period for tiny negative offsets
    phases[phases >= 1.0] = 0.0
    return phases


def fold_light_curve(curve: LightCurve, period: float, epoch: float = 0.0) -> LightCurve:
    """
    Fold a light curve on ``period``, sorting points by phase.

    Args:
        curve: Light curve to fold
        period: Folding period
        epoch: Reference epoch (time of phase zero)

    Returns:
        Light curve whose time axis holds phases in [0, 1), non-decreasing
    """
    phases = compute_phases(curve.time, period, epoch)
    order = np.argsort(phases, kind='stable')

    return LightCurve(
        time=phases[order],
        flux=curve.flux[order],
        star_id=curve.star_id,
        metadata={**curve.metadata, 'folded_period': period, 'folded_epoch': epoch},
        validate=False,
    )


def bin_folded_curve(folded: LightCurve, n_bins: int = 100) -> Tuple[np.ndarray, np.ndarray]:
    """
    Average a folded curve onto a regular phase grid.

    Args:
        folded: Output of ``fold_light_curve``
        n_bins: Number of phase bins over [0, 1)

    Returns:
        Tuple of (bin_centers, mean_flux); empty bins hold NaN
    """
    if n_bins <= 0:
        raise ValueError("Number of bins must be positive")

    mean_flux, edges, _ = binned_statistic(
        folded.time, folded.flux, statistic='mean', bins=n_bins, range=(0.0, 1.0)
    )
    centers = 0.5 * (edges[:-1] + edges[1:])

    return centers, mean_flux
