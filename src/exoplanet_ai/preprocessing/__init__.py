"""Preprocessing modules for light curve data."""

from .preprocessor import (
    LightCurvePreprocessor,
    detect_transits,
    detrend,
    detrend_window_size,
    moving_median,
    normalize_flux,
    pad_or_truncate,
)
from .phase_folding import bin_folded_curve, compute_phases, fold_light_curve

__all__ = [
    'LightCurvePreprocessor',
    'bin_folded_curve',
    'compute_phases',
    'detect_transits',
    'detrend',
    'detrend_window_size',
    'fold_light_curve',
    'moving_median',
    'normalize_flux',
    'pad_or_truncate'
]
