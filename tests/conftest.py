"""
Pytest configuration and shared fixtures for the exoplanet detection core tests.
"""

import pytest
import torch
import numpy as np
import tempfile
import shutil
from pathlib import Path
import sys

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from exoplanet_ai.data.types import LightCurve, StoreConfig
from exoplanet_ai.data.synthetic import generate_synthetic_light_curve
from exoplanet_ai.storage.model_store import InMemoryStore


@pytest.fixture
def device():
    """Tests run on CPU."""
    return torch.device('cpu')


@pytest.fixture
def temp_dir():
    """Provide temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def rng():
    """Seeded numpy generator."""
    return np.random.default_rng(42)


@pytest.fixture
def store_config(temp_dir):
    """local-store:// paths resolve inside a temporary directory."""
    return StoreConfig(root_dir=temp_dir / 'models')


@pytest.fixture
def memory_store():
    return InMemoryStore()


@pytest.fixture
def transit_curve(rng):
    """Synthetic light curve with a periodic transit."""
    return generate_synthetic_light_curve(
        has_transit=True, length=1500, period=5.0, depth=0.01, duration=0.06,
        star_id='transit_test', rng=rng
    )


@pytest.fixture
def flat_curve(rng):
    """Synthetic light curve without a transit."""
    return generate_synthetic_light_curve(
        has_transit=False, length=1500, star_id='flat_test', rng=rng
    )


@pytest.fixture
def box_transit_factory():
    """Build curves with a box transit straddling phase zero."""
    def make(period=5.0, depth=0.01, half_width=0.1, n_samples=3000,
             cadence=0.02, noise=0.0005, seed=0):
        generator = np.random.default_rng(seed)
        time = np.arange(n_samples) * cadence
        flux = 1.0 + generator.normal(0, noise, n_samples)
        phase = (time % period) / period
        in_transit = (phase < half_width) | (phase > 1 - half_width)
        flux[in_transit] *= 1 - depth
        return LightCurve(time=time, flux=flux, star_id='box_transit')
    return make


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically."""
    for item in items:
        # Mark integration tests
        if "test_integration" in item.nodeid:
            item.add_marker(pytest.mark.integration)
            item.add_marker(pytest.mark.slow)
        else:
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def set_random_seeds():
    """Set random seeds for reproducible tests."""
    np.random.seed(42)
    torch.manual_seed(42)
