"""
Integration tests for the complete exoplanet detection pipeline.
Tests end-to-end workflows from synthetic light curves to evaluation and persistence.
"""

import threading

import pytest
import numpy as np

from exoplanet_ai.data.synthetic import generate_synthetic_light_curve, generate_training_dataset
from exoplanet_ai.data.types import StoreConfig, TrainingConfig
from exoplanet_ai.explainability.shap_values import calculate_shap_values, exact_shapley_values
from exoplanet_ai.features.extractor import baseline_features, extract_features
from exoplanet_ai.models.detector import ExoplanetDetector
from exoplanet_ai.preprocessing.phase_folding import fold_light_curve
from exoplanet_ai.preprocessing.preprocessor import detrend
from exoplanet_ai.search.bls import calculate_bls


def split(dataset):
    curves = [detrend(curve) for curve, _ in dataset]
    labels = [label for _, label in dataset]
    return curves, labels


class TestEndToEndPipeline:
    """Test complete end-to-end pipeline functionality."""

    @pytest.fixture(scope='class')
    def trained_detector(self):
        rng = np.random.default_rng(2024)
        curves, labels = split(generate_training_dataset(80, 80, length=1000, rng=rng))

        detector = ExoplanetDetector(training_config=TrainingConfig(seed=2024), seed=2024)
        history = detector.train_model(curves, labels, epochs=20, batch_size=16)

        assert len(history['loss']) == 20
        assert history['loss'][-1] < history['loss'][0]
        return detector

    def test_transit_scores_above_flat_control(self, trained_detector):
        rng = np.random.default_rng(7)
        transit = detrend(generate_synthetic_light_curve(
            has_transit=True, length=1000, period=5.0, depth=0.01, duration=0.06,
            star_id='kepler_candidate', rng=rng
        ))
        control = detrend(generate_synthetic_light_curve(
            has_transit=True, length=1000, period=5.0, depth=0.0, duration=0.06,
            star_id='kepler_control', rng=rng
        ))

        transit_result = trained_detector.predict(transit)
        control_result = trained_detector.predict(control)

        assert transit_result.confidence > control_result.confidence
        assert transit_result.is_exoplanet
        assert not control_result.is_exoplanet

    def test_evaluation_on_held_out_set(self, trained_detector):
        rng = np.random.default_rng(99)
        curves, labels = split(generate_training_dataset(30, 30, length=1000, rng=rng))

        metrics = trained_detector.evaluate_model(curves, labels)

        assert metrics.n_samples == 60
        assert metrics.accuracy >= 0.75
        assert metrics.roc_auc >= 0.8

    def test_saved_model_scores_identically(self, trained_detector, temp_dir):
        rng = np.random.default_rng(5)
        curve = detrend(generate_synthetic_light_curve(has_transit=True, length=1000, rng=rng))

        trained_detector.store_config = StoreConfig(root_dir=temp_dir)
        trained_detector.save_model('local-store://integration-model')

        restored = ExoplanetDetector(store_config=StoreConfig(root_dir=temp_dir))
        restored.load_model('local-store://integration-model')

        assert restored.predict(curve).confidence == pytest.approx(
            trained_detector.predict(curve).confidence, abs=1e-6
        )


class TestVettingWorkflow:
    """Period search, folding and attribution on one candidate."""

    def test_search_fold_and_explain(self):
        rng = np.random.default_rng(11)
        curve = generate_synthetic_light_curve(
            has_transit=True, length=3000, period=4.0, depth=0.02, duration=0.1,
            noise=0.0005, rng=rng
        )
        references = [
            generate_synthetic_light_curve(has_transit=False, length=3000, rng=rng)
            for _ in range(5)
        ]

        result = calculate_bls(detrend(curve))
        assert result.is_dimming
        assert abs(result.period - 4.0) <= (20.0 - 0.5) / 100 * 2

        folded = fold_light_curve(curve, period=result.period)
        assert folded.metadata['folded_period'] == result.period

        features = extract_features(curve)
        baseline = baseline_features(references)

        shap = calculate_shap_values(features, baseline, rng=np.random.default_rng(0))
        assert set(shap) == set(features.to_dict())

        exact = exact_shapley_values(
            features, baseline, lambda p: p['range'] - p['skewness']
        )
        assert exact['range'] > 0
        assert exact['variance'] == pytest.approx(0.0)


class TestConcurrentUse:
    """Independent detectors can train in parallel threads."""

    def test_parallel_training_sessions(self):
        rng = np.random.default_rng(3)
        curves, labels = split(generate_training_dataset(8, 8, length=400, rng=rng))
        errors = []

        def run(seed):
            try:
                detector = ExoplanetDetector(seed=seed)
                detector.train_model(curves, labels, epochs=1, batch_size=8)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=run, args=(seed,)) for seed in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
