"""
Unit tests for training and evaluation components.
Tests the trainer loop, train/validation split and classification metrics.
"""

import threading

import pytest
import torch
import numpy as np
from sklearn.metrics import roc_auc_score

from exoplanet_ai.data.types import EvaluationMetrics, TrainingConfig
from exoplanet_ai.models.cnn import TransitCNN
from exoplanet_ai.training.metrics import MetricsCalculator, roc_auc
from exoplanet_ai.training.trainer import ExoplanetTrainer


class TestMetricsCalculator:
    """Test suite for MetricsCalculator."""

    def setup_method(self):
        """Setup test fixtures."""
        self.metrics_calc = MetricsCalculator(threshold=0.5)

        rng = np.random.default_rng(42)
        self.y_true = rng.integers(0, 2, 100)
        self.y_pred_proba = rng.random(100)

    def test_metrics_calculation(self):
        """Test metric ranges and confusion counts."""
        metrics = self.metrics_calc.calculate_metrics(self.y_true, self.y_pred_proba)

        assert isinstance(metrics, EvaluationMetrics)
        for value in metrics.to_dict().values():
            assert 0 <= value <= 1
        assert metrics.n_samples == 100
        assert metrics.tp + metrics.fn == int(np.sum(self.y_true == 1))

    def test_perfect_predictions(self):
        metrics = self.metrics_calc.calculate_metrics([1, 1, 0, 0], [0.9, 0.8, 0.1, 0.2])

        assert metrics.to_dict() == {
            'accuracy': 1.0, 'precision': 1.0, 'recall': 1.0, 'f1_score': 1.0, 'roc_auc': 1.0
        }

    def test_all_wrong_predictions(self):
        metrics = self.metrics_calc.calculate_metrics([1, 1, 0, 0], [0.1, 0.2, 0.9, 0.8])

        assert metrics.accuracy == 0.0
        assert metrics.precision == 0.0
        assert metrics.recall == 0.0
        assert metrics.f1_score == 0.0
        assert metrics.roc_auc == 0.0

    def test_threshold_is_strict(self):
        metrics = self.metrics_calc.calculate_metrics([1], [0.5])

        assert metrics.fn == 1
        assert metrics.tp == 0

    def test_no_positive_predictions(self):
        """Zero divisions fall back to 0."""
        metrics = self.metrics_calc.calculate_metrics([1, 0], [0.1, 0.2])

        assert metrics.precision == 0.0
        assert metrics.recall == 0.0
        assert metrics.f1_score == 0.0

    def test_edge_cases(self):
        with pytest.raises(ValueError):
            self.metrics_calc.calculate_metrics([1, 0], [0.5])
        with pytest.raises(ValueError):
            self.metrics_calc.calculate_metrics([], [])
        with pytest.raises(ValueError):
            self.metrics_calc.calculate_metrics([2, 0], [0.5, 0.5])


class TestRocAuc:
    """Pairwise-ranking ROC-AUC."""

    def test_matches_sklearn_without_ties(self):
        rng = np.random.default_rng(0)
        y_true = rng.integers(0, 2, 200)
        y_prob = rng.random(200)

        assert roc_auc(y_true, y_prob) == pytest.approx(roc_auc_score(y_true, y_prob))

    def test_single_class_gives_half(self):
        assert roc_auc([1, 1, 1], [0.2, 0.5, 0.9]) == 0.5
        assert roc_auc([0, 0], [0.2, 0.5]) == 0.5

    def test_ties_keep_input_order(self):
        # Equal scores rank the earlier example first
        assert roc_auc([1, 0], [0.5, 0.5]) == 1.0
        assert roc_auc([0, 1], [0.5, 0.5]) == 0.0


class TestExoplanetTrainer:
    """Test suite for ExoplanetTrainer."""

    def setup_method(self):
        """Setup test fixtures."""
        self.n_samples = 20
        self.sequence_length = 32

        rng = np.random.default_rng(0)
        self.inputs = rng.normal(size=(self.n_samples, self.sequence_length)).astype(np.float32)
        self.labels = np.tile([0.0, 1.0], self.n_samples // 2).astype(np.float32)

        self.model = TransitCNN(sequence_length=self.sequence_length)

    def make_trainer(self, **config):
        config.setdefault('batch_size', 4)
        config.setdefault('seed', 0)
        return ExoplanetTrainer(
            self.model, config=TrainingConfig(**config), device=torch.device('cpu')
        )

    def test_trainer_initialization(self):
        trainer = self.make_trainer()

        assert trainer.model is self.model
        assert isinstance(trainer.optimizer, torch.optim.Adam)
        assert trainer.optimizer.param_groups[0]['lr'] == 1e-3
        assert set(trainer.training_history) == {'loss', 'accuracy', 'val_loss', 'val_accuracy'}

    def test_split_sizes(self):
        trainer = self.make_trainer()
        x = torch.arange(10, dtype=torch.float32).unsqueeze(1)
        y = torch.arange(10, dtype=torch.float32)

        train_x, train_y, val_x, val_y = trainer.split_train_val(x, y)

        assert len(train_x) == 8
        assert len(val_x) == 2
        # Inputs and targets stay paired after the shuffle
        torch.testing.assert_close(train_x.squeeze(1), train_y)
        assert sorted(torch.cat([train_y, val_y]).tolist()) == list(range(10))

    def test_split_is_seeded(self):
        x = torch.arange(10, dtype=torch.float32).unsqueeze(1)
        y = torch.arange(10, dtype=torch.float32)

        first = self.make_trainer(seed=5).split_train_val(x, y)
        second = self.make_trainer(seed=5).split_train_val(x, y)

        torch.testing.assert_close(first[2], second[2])

    def test_split_needs_a_training_sample(self):
        trainer = self.make_trainer()

        with pytest.raises(ValueError):
            trainer.split_train_val(torch.zeros(1, 4), torch.zeros(1))

    def test_full_training_loop(self):
        trainer = self.make_trainer()

        history = trainer.train(self.inputs, self.labels, epochs=3)

        for key in ('loss', 'accuracy', 'val_loss', 'val_accuracy'):
            assert len(history[key]) == 3
        assert all(np.isfinite(history['loss']))
        assert all(0 <= acc <= 1 for acc in history['accuracy'])
        assert not self.model.training

    def test_training_changes_weights(self):
        trainer = self.make_trainer()
        before = self.model.fc3.weight.detach().clone()

        trainer.train(self.inputs, self.labels, epochs=1)

        assert not torch.equal(before, self.model.fc3.weight)

    def test_no_validation_split(self):
        trainer = self.make_trainer(validation_split=0.0)

        history = trainer.train(self.inputs, self.labels, epochs=2)

        assert len(history['loss']) == 2
        assert history['val_loss'] == []

    def test_cancel_before_first_epoch(self):
        trainer = self.make_trainer()
        cancel = threading.Event()
        cancel.set()

        history = trainer.train(self.inputs, self.labels, epochs=5, cancel_event=cancel)

        assert history['loss'] == []

    def test_cancel_between_epochs(self):
        trainer = self.make_trainer()
        cancel = threading.Event()
        original_train_epoch = trainer.train_epoch

        def train_epoch_then_cancel(loader):
            metrics = original_train_epoch(loader)
            cancel.set()
            return metrics

        trainer.train_epoch = train_epoch_then_cancel

        history = trainer.train(self.inputs, self.labels, epochs=5, cancel_event=cancel)

        assert len(history['loss']) == 1
