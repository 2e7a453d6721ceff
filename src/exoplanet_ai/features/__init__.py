"""Feature extraction for light curves."""

from .extractor import baseline_features, extract_features, extract_features_batch

__all__ = [
    'baseline_features',
    'extract_features',
    'extract_features_batch'
]
