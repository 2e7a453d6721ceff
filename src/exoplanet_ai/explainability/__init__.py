"""Explainability methods for transit predictions."""

from .saliency import ExplainabilityMethod, GradientSaliencyExplainer
from .shap_values import calculate_shap_values, exact_shapley_values

__all__ = [
    'ExplainabilityMethod',
    'GradientSaliencyExplainer',
    'calculate_shap_values',
    'exact_shapley_values'
]
