"""
Exoplanet AI: explainable transit detection core.
Detrending, periodic transit search, a CNN transit classifier and
post-hoc explanations for light-curve data.
"""

__version__ = "1.0.0"
__author__ = "NASA Space Apps 2025 Team"

from .data.types import (
    BLSResult,
    EvaluationMetrics,
    FeatureVector,
    LightCurve,
    PredictionResult,
)
from .explainability.shap_values import calculate_shap_values, exact_shapley_values
from .features.extractor import extract_features
from .models.detector import ExoplanetDetector
from .preprocessing.phase_folding import fold_light_curve
from .preprocessing.preprocessor import detrend, normalize_flux
from .search.bls import calculate_bls

__all__ = [
    'BLSResult',
    'EvaluationMetrics',
    'ExoplanetDetector',
    'FeatureVector',
    'LightCurve',
    'PredictionResult',
    'calculate_bls',
    'calculate_shap_values',
    'detrend',
    'exact_shapley_values',
    'extract_features',
    'fold_light_curve',
    'normalize_flux'
]
