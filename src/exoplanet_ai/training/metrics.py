"""
Classification metrics for exoplanet detection evaluation.
"""

from typing import Sequence

import numpy as np
from sklearn.metrics import confusion_matrix

from ..data.types import EvaluationMetrics


def roc_auc(y_true: Sequence[int], y_prob: Sequence[float]) -> float:
    """
    Area under the ROC curve by pairwise ranking.

    Examples are sorted by confidence, highest first (ties keep input order).
    Every negative adds the number of positives ranked above it; the sum is
    divided by ``positives * negatives``. Returns 0.5 when either class is
    absent.

    Args:
        y_true: True labels (0/1)
        y_prob: Predicted probabilities

    Returns:
        ROC-AUC in [0, 1]
    """
    y_true = np.asarray(y_true)
    y_prob = np.asarray(y_prob, dtype=np.float64)

    positives = int(np.sum(y_true == 1))
    negatives = len(y_true) - positives

    if positives == 0 or negatives == 0:
        return 0.5

    order = np.argsort(-y_prob, kind='stable')
    sorted_labels = y_true[order]

    true_positives_above = np.cumsum(sorted_labels == 1)
    accumulated = np.sum(true_positives_above[sorted_labels != 1])

    return float(accumulated / (positives * negatives))


class MetricsCalculator:
    """
    Confusion-matrix metrics and ranking quality for a labeled batch.
    """

    def __init__(self, threshold: float = 0.5):
        """
        Initialize metrics calculator.

        Args:
            threshold: Probability above which a prediction counts as positive
        """
        self.threshold = threshold

    def calculate_metrics(
        self,
        y_true: Sequence[int],
        y_prob: Sequence[float]
    ) -> EvaluationMetrics:
        """
        Calculate accuracy, precision, recall, F1 and ROC-AUC.

        Args:
            y_true: True labels (0/1)
            y_prob: Predicted probabilities

        Returns:
            EvaluationMetrics for the batch
        """
        y_true = np.asarray(y_true).astype(int)
        y_prob = np.asarray(y_prob, dtype=np.float64)

        if len(y_true) != len(y_prob):
            raise ValueError("Labels and probabilities must have same length")

        if len(y_true) == 0:
            raise ValueError("Cannot evaluate an empty batch")

        if not np.isin(y_true, (0, 1)).all():
            raise ValueError("Labels must be 0 (no planet) or 1 (planet)")

        y_pred = (y_prob > self.threshold).astype(int)

        cm = confusion_matrix(y_true, y_pred, labels=[0, 1])
        tn, fp, fn, tp = (int(v) for v in cm.ravel())

        # Calculate metrics with zero division handling
        accuracy = (tp + tn) / len(y_true)
        precision = tp / (tp + fp) if (tp + fp) > 0 else 0.0
        recall = tp / (tp + fn) if (tp + fn) > 0 else 0.0
        f1 = 2 * (precision * recall) / (precision + recall) if (precision + recall) > 0 else 0.0

        return EvaluationMetrics(
            accuracy=accuracy,
            precision=precision,
            recall=recall,
            f1_score=f1,
            roc_auc=roc_auc(y_true, y_prob),
            tp=tp,
            tn=tn,
            fp=fp,
            fn=fn
        )
