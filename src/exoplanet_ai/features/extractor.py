"""
Statistical feature extraction from flux series.
"""

import warnings
from typing import Dict, Sequence

import numpy as np
import pandas as pd

from ..data.types import FEATURE_NAMES, FeatureVector, LightCurve


def extract_features(curve: LightCurve) -> FeatureVector:
    """
    Compute summary statistics of a light curve's flux.

    Variance is the population variance (divide by N). Skewness and excess
    kurtosis are the third and fourth standardized moments. A constant flux
    has zero variance, so its skewness and kurtosis are NaN and a warning is
    emitted; callers should guard such inputs.

    Args:
        curve: Light curve

    Returns:
        FeatureVector for the flux array
    """
    flux = curve.flux
    mean = float(np.mean(flux))
    variance = float(np.mean((flux - mean) ** 2))
    std = float(np.sqrt(variance))

    min_flux = float(np.min(flux))
    max_flux = float(np.max(flux))

    if std == 0 or np.all(flux == flux[0]):
        warnings.warn(
            f"Constant flux in {curve.star_id or 'light curve'}: "
            "skewness and kurtosis are undefined"
        )
        skewness = kurtosis = float('nan')
    else:
        z = (flux - mean) / std
        skewness = float(np.mean(z ** 3))
        kurtosis = float(np.mean(z ** 4) - 3)

    return FeatureVector(
        mean=mean,
        variance=variance,
        std=std,
        min=min_flux,
        max=max_flux,
        range=max_flux - min_flux,
        skewness=skewness,
        kurtosis=kurtosis,
    )


def extract_features_batch(curves: Sequence[LightCurve]) -> pd.DataFrame:
    """Feature table with one row per curve, indexed by star id."""
    rows = []
    for i, curve in enumerate(curves):
        row = extract_features(curve).to_dict()
        row['star_id'] = curve.star_id if curve.star_id is not None else f'curve_{i}'
        rows.append(row)

    df = pd.DataFrame(rows, columns=['star_id', *FEATURE_NAMES])
    return df.set_index('star_id')


def baseline_features(curves: Sequence[LightCurve]) -> Dict[str, float]:
    """Per-feature mean over a reference population, for use as an attribution baseline."""
    if len(curves) == 0:
        raise ValueError("Need at least one curve to compute a baseline")

    means = extract_features_batch(curves).mean(axis=0, skipna=True)
    return {name: float(means[name]) for name in FEATURE_NAMES}
