"""Training and evaluation for exoplanet detection models."""

from .trainer import ExoplanetTrainer, get_device
from .metrics import MetricsCalculator, roc_auc

__all__ = [
    'ExoplanetTrainer',
    'MetricsCalculator',
    'get_device',
    'roc_auc'
]
