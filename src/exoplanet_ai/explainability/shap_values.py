"""
Feature attribution over light curve summary statistics.

Two methods are provided:

- ``calculate_shap_values``: the legacy placeholder. Each feature's deviation
  from the baseline is scaled by an independent random factor in [0, 0.5).
  It is not a Shapley estimate and changes from call to call unless a seeded
  generator is passed.
- ``exact_shapley_values``: exact Shapley values of a scalar value function
  over every coalition of features, with absent features held at baseline.
  Deterministic, and the attributions sum to
  ``value_fn(features) - value_fn(baseline)``.
"""

from itertools import combinations
from math import factorial
from typing import Callable, Dict, Mapping, Optional, Union

import numpy as np

from ..data.types import FeatureVector

FeatureMapping = Union[Mapping[str, float], FeatureVector]

# 2^16 value_fn calls per explanation is the practical ceiling
MAX_EXACT_FEATURES = 16


def _as_dict(features: FeatureMapping) -> Dict[str, float]:
    if isinstance(features, FeatureVector):
        return features.to_dict()
    return {name: float(value) for name, value in features.items()}


def calculate_shap_values(
    features: FeatureMapping,
    baseline: FeatureMapping,
    rng: Optional[np.random.Generator] = None
) -> Dict[str, float]:
    """
    Randomly scaled deviation of each feature from its baseline.

    Args:
        features: Observed feature values
        baseline: Reference values; missing names default to 0
        rng: Random generator (a fresh unseeded one if None)

    Returns:
        Mapping from feature name to attribution
    """
    rng = rng if rng is not None else np.random.default_rng()
    features = _as_dict(features)
    baseline = _as_dict(baseline)

    return {
        name: (value - baseline.get(name, 0.0)) * rng.random() * 0.5
        for name, value in features.items()
    }


def exact_shapley_values(
    features: FeatureMapping,
    baseline: FeatureMapping,
    value_fn: Callable[[Dict[str, float]], float]
) -> Dict[str, float]:
    """
    Exact Shapley attribution of ``value_fn`` over the named features.

    For each coalition S the value is ``value_fn`` evaluated with features in
    S at their observed values and the others at baseline. Feature i receives
    the weighted sum of its marginal contributions
    ``|S|! (n - |S| - 1)! / n! * (v(S + i) - v(S))`` over all S without i.

    Args:
        features: Observed feature values
        baseline: Reference values; missing names default to 0
        value_fn: Scalar model of a complete feature mapping

    Returns:
        Mapping from feature name to Shapley value
    """
    features = _as_dict(features)
    baseline = _as_dict(baseline)
    names = list(features)
    n = len(names)

    if n > MAX_EXACT_FEATURES:
        raise ValueError(f"Exact Shapley values support at most {MAX_EXACT_FEATURES} features, got {n}")

    reference = {name: baseline.get(name, 0.0) for name in names}

    # One value_fn call per coalition, keyed by bitmask over names
    values = {}
    for mask in range(1 << n):
        point = {
            name: features[name] if mask & (1 << i) else reference[name]
            for i, name in enumerate(names)
        }
        values[mask] = float(value_fn(point))

    weights = [factorial(k) * factorial(n - k - 1) / factorial(n) for k in range(n)]

    shapley = {}
    for i, name in enumerate(names):
        others = [j for j in range(n) if j != i]
        total = 0.0
        for k in range(n):
            for subset in combinations(others, k):
                mask = sum(1 << j for j in subset)
                total += weights[k] * (values[mask | (1 << i)] - values[mask])
        shapley[name] = total

    return shapley
