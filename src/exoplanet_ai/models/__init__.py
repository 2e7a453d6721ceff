"""Models package for exoplanet detection."""

from .cnn import TransitCNN, create_cnn_model, model_summary
from .detector import DEFAULT_MODEL_PATH, MODEL_VERSION, ExoplanetDetector

__all__ = [
    'DEFAULT_MODEL_PATH',
    'MODEL_VERSION',
    'ExoplanetDetector',
    'TransitCNN',
    'create_cnn_model',
    'model_summary'
]
