"""Tests for statistical feature extraction."""

import math

import pytest
import numpy as np

from exoplanet_ai.data.types import FEATURE_NAMES, FeatureVector, LightCurve
from exoplanet_ai.features.extractor import baseline_features, extract_features, extract_features_batch


def make_curve(flux, star_id=None):
    flux = np.asarray(flux, dtype=float)
    return LightCurve(time=np.arange(len(flux), dtype=float), flux=flux, star_id=star_id)


class TestExtractFeatures:

    def test_invariants(self, transit_curve):
        features = extract_features(transit_curve)

        assert features.range == features.max - features.min
        assert features.std == pytest.approx(math.sqrt(features.variance))
        assert features.variance >= 0

    def test_known_values(self):
        features = extract_features(make_curve([1.0, 2.0, 3.0, 4.0]))

        assert features.mean == 2.5
        assert features.variance == pytest.approx(1.25)  # population variance
        assert features.min == 1.0
        assert features.max == 4.0
        assert features.range == 3.0
        assert features.skewness == pytest.approx(0.0, abs=1e-12)
        # Uniform four-point set: fourth moment / var^2 = 1.64
        assert features.kurtosis == pytest.approx(1.64 - 3)

    def test_gaussian_moments_near_zero(self, rng):
        features = extract_features(make_curve(rng.normal(1.0, 0.01, 20000)))

        assert abs(features.skewness) < 0.1
        assert abs(features.kurtosis) < 0.15

    def test_transit_skews_negative(self, box_transit_factory):
        features = extract_features(box_transit_factory(depth=0.02, half_width=0.02))
        assert features.skewness < 0

    def test_constant_flux_warns_and_gives_nan(self):
        with pytest.warns(UserWarning, match="Constant flux"):
            features = extract_features(make_curve(np.full(10, 2.0)))

        assert features.std == 0.0
        assert features.range == 0.0
        assert math.isnan(features.skewness)
        assert math.isnan(features.kurtosis)

    def test_to_dict_has_closed_feature_set(self, flat_curve):
        values = extract_features(flat_curve).to_dict()
        assert set(values) == set(FEATURE_NAMES)


class TestFeatureVector:

    def test_rejects_inconsistent_range(self):
        with pytest.raises(ValueError):
            FeatureVector(mean=0, variance=1, std=1, min=0, max=2, range=3, skewness=0, kurtosis=0)

    def test_rejects_inconsistent_std(self):
        with pytest.raises(ValueError):
            FeatureVector(mean=0, variance=4, std=1, min=0, max=2, range=2, skewness=0, kurtosis=0)

    def test_from_dict_round_trip(self, flat_curve):
        features = extract_features(flat_curve)
        assert FeatureVector.from_dict(features.to_dict()) == features

    def test_from_dict_missing_feature(self):
        with pytest.raises(ValueError):
            FeatureVector.from_dict({'mean': 1.0})

    def test_getitem(self, flat_curve):
        features = extract_features(flat_curve)
        assert features['mean'] == features.mean
        with pytest.raises(KeyError):
            features['median']


class TestBatchFeatures:

    def test_dataframe_indexed_by_star(self, transit_curve, flat_curve):
        df = extract_features_batch([transit_curve, flat_curve])

        assert list(df.index) == ['transit_test', 'flat_test']
        assert list(df.columns) == list(FEATURE_NAMES)

    def test_unnamed_curves_get_positional_ids(self):
        df = extract_features_batch([make_curve([1.0, 2.0]), make_curve([3.0, 5.0])])
        assert list(df.index) == ['curve_0', 'curve_1']

    def test_baseline_is_feature_mean(self):
        curves = [make_curve([1.0, 3.0]), make_curve([2.0, 6.0])]

        baseline = baseline_features(curves)

        assert baseline['mean'] == pytest.approx(3.0)
        assert baseline['range'] == pytest.approx(3.0)

    def test_baseline_needs_curves(self):
        with pytest.raises(ValueError):
            baseline_features([])
