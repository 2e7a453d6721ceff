"""
Light curve preprocessing: moving-median detrending, normalization and
fixed-length shaping of classifier inputs.
"""

from typing import Optional, Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from ..data.types import LightCurve, PreprocessingConfig


def detrend_window_size(n_samples: int, config: Optional[PreprocessingConfig] = None) -> int:
    """Moving-median window length for a series of ``n_samples`` points."""
    config = config or PreprocessingConfig()
    return min(config.max_detrend_window, n_samples // config.detrend_window_divisor)


def moving_median(flux: np.ndarray, window_size: int) -> np.ndarray:
    """
    Median of the half-open window ``[i - h, i + h)`` around each sample.

    ``h = window_size // 2``. Windows are clipped at the array edges rather
    than padded. A window of size 0 or 1 is empty and its median is 1.0.

    Args:
        flux: Flux array
        window_size: Nominal window length

    Returns:
        Array of local medians, same length as flux
    """
    flux = np.asarray(flux, dtype=np.float64)
    half = window_size // 2

    if half == 0:
        return np.ones_like(flux)

    # NaN padding turns the clipped edge windows into full-width views
    padded = np.concatenate([np.full(half, np.nan), flux, np.full(half, np.nan)])
    windows = sliding_window_view(padded, 2 * half)[:len(flux)]

    return np.nanmedian(windows, axis=1)


def detrend(curve: LightCurve, config: Optional[PreprocessingConfig] = None) -> LightCurve:
    """
    Remove slow trends by dividing each flux value by its local median.

    Args:
        curve: Raw light curve
        config: Preprocessing configuration (window limits)

    Returns:
        New light curve with the same time axis and detrended flux
    """
    window_size = detrend_window_size(curve.length, config)
    trend = moving_median(curve.flux, window_size)
    return curve.with_flux(curve.flux / trend)


def normalize_flux(flux: Sequence[float]) -> np.ndarray:
    """Zero-mean, unit-variance standardization. Constant input maps to zeros."""
    flux = np.asarray(flux, dtype=np.float64)

    # Rounding in the mean can leave a tiny nonzero std on constant input
    if flux.size == 0 or np.all(flux == flux[0]):
        return np.zeros_like(flux)

    std_flux = np.std(flux)
    return (flux - np.mean(flux)) / (std_flux or 1.0)


def pad_or_truncate(values: Sequence[float], length: int) -> np.ndarray:
    """Keep the first ``length`` values, right-padding with zeros when short."""
    values = np.asarray(values, dtype=np.float64)

    if len(values) >= length:
        return values[:length].copy()

    return np.concatenate([values, np.zeros(length - len(values))])


def detect_transits(curve: LightCurve, threshold: float = -3.0) -> np.ndarray:
    """Indices whose normalized flux falls below ``threshold`` standard deviations."""
    normalized = normalize_flux(curve.flux)
    return np.flatnonzero(normalized < threshold)


class LightCurvePreprocessor:
    """
    Shapes light curves into fixed-length classifier inputs.

    Each curve is standardized (zero mean, unit variance) and then truncated
    from the head or zero-padded at the tail to ``config.input_length``.
    Saliency indices refer to positions in this shaped array.
    """

    def __init__(self, config: Optional[PreprocessingConfig] = None):
        """
        Initialize the preprocessor.

        Args:
            config: Preprocessing configuration parameters
        """
        self.config = config or PreprocessingConfig()

    @property
    def input_length(self) -> int:
        return self.config.input_length

    def detrend(self, curve: LightCurve) -> LightCurve:
        return detrend(curve, self.config)

    def prepare(self, curve: LightCurve) -> np.ndarray:
        """Normalize then pad or truncate one curve to the model input length."""
        normalized = normalize_flux(curve.flux)
        return pad_or_truncate(normalized, self.config.input_length).astype(np.float32)

    def prepare_batch(self, curves: Sequence[LightCurve]) -> np.ndarray:
        """Stack prepared curves into a (n_curves, input_length) array."""
        if len(curves) == 0:
            return np.zeros((0, self.config.input_length), dtype=np.float32)

        return np.stack([self.prepare(curve) for curve in curves])
