"""Data types, configuration and synthetic data for the detection core."""

from .types import (
    FEATURE_NAMES,
    BLSConfig,
    BLSResult,
    EvaluationMetrics,
    FeatureVector,
    LightCurve,
    PredictionResult,
    PreprocessingConfig,
    StoreConfig,
    TrainingConfig,
)
from .synthetic import generate_synthetic_light_curve, generate_training_dataset

__all__ = [
    'FEATURE_NAMES',
    'BLSConfig',
    'BLSResult',
    'EvaluationMetrics',
    'FeatureVector',
    'LightCurve',
    'PredictionResult',
    'PreprocessingConfig',
    'StoreConfig',
    'TrainingConfig',
    'generate_synthetic_light_curve',
    'generate_training_dataset'
]
