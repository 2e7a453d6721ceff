"""
Synthetic light curve generation for tests, demos and training runs.

Stands in for a real archive feed: flat stellar flux with white noise and,
optionally, a periodic transit dip with a smooth cosine profile.
"""

from typing import List, Optional, Tuple

import numpy as np

from .types import LightCurve


def generate_synthetic_light_curve(
    has_transit: bool = False,
    length: int = 1000,
    cadence: float = 0.02,
    period: Optional[float] = None,
    depth: Optional[float] = None,
    duration: Optional[float] = None,
    noise: float = 0.001,
    star_id: Optional[str] = None,
    rng: Optional[np.random.Generator] = None
) -> LightCurve:
    """
    Generate a light curve with an optional injected transit.

    Args:
        has_transit: Whether to inject a periodic transit
        length: Number of samples
        cadence: Time between samples (days)
        period: Transit period (sampled from [3, 10) if None)
        depth: Fractional transit depth (sampled from [0.005, 0.02) if None)
        duration: Transit duration as a fraction of the period
            (sampled from [0.05, 0.1) if None)
        noise: Peak-to-peak amplitude of the uniform flux noise
        star_id: Identifier attached to the curve
        rng: Random generator (a fresh unseeded one if None)

    Returns:
        Light curve with time starting at 0
    """
    if length <= 0:
        raise ValueError("Length must be positive")

    rng = rng if rng is not None else np.random.default_rng()

    time = np.arange(length) * cadence
    flux = 1.0 + (rng.random(length) - 0.5) * noise

    metadata = {'has_transit': has_transit}

    if has_transit:
        period = period if period is not None else 3 + rng.random() * 7
        depth = depth if depth is not None else 0.005 + rng.random() * 0.015
        duration = duration if duration is not None else 0.05 + rng.random() * 0.05

        if period <= 0 or duration <= 0:
            raise ValueError("Period and duration must be positive")

        phase = (time % period) / period
        in_transit = phase < duration
        # Dip deepens from 0 at phase 0 to the full depth at the end of the window
        transit_shape = np.cos(np.pi * phase[in_transit] / duration)
        flux[in_transit] *= 1 - depth * (1 - transit_shape) / 2

        metadata.update({'period': period, 'depth': depth, 'duration': duration})

    return LightCurve(time=time, flux=flux, star_id=star_id, metadata=metadata)


def generate_training_dataset(
    positive_count: int = 50,
    negative_count: int = 50,
    length: int = 1000,
    rng: Optional[np.random.Generator] = None
) -> List[Tuple[LightCurve, int]]:
    """
    Generate a shuffled, labeled set of synthetic light curves.

    Returns:
        List of (light_curve, label) pairs, label 1 for injected transits
    """
    rng = rng if rng is not None else np.random.default_rng()

    dataset = []
    for i in range(positive_count):
        curve = generate_synthetic_light_curve(
            has_transit=True, length=length, star_id=f'planet_{i:06d}', rng=rng
        )
        dataset.append((curve, 1))

    for i in range(negative_count):
        curve = generate_synthetic_light_curve(
            has_transit=False, length=length, star_id=f'star_{i:06d}', rng=rng
        )
        dataset.append((curve, 0))

    order = rng.permutation(len(dataset))
    return [dataset[i] for i in order]
