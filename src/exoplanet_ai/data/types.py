"""
Core data types and configuration for the exoplanet detection core.
"""

import math
import os
from dataclasses import InitVar, dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import numpy as np


FEATURE_NAMES = (
    'mean', 'variance', 'std', 'min', 'max', 'range', 'skewness', 'kurtosis'
)


def _readonly(values) -> np.ndarray:
    array = np.array(values, dtype=np.float64)
    array.setflags(write=False)
    return array


@dataclass
class LightCurve:
    """A time-ordered series of flux measurements for one star."""

    time: np.ndarray          # Observation times (days)
    flux: np.ndarray          # Flux values, same length as time
    star_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    validate: InitVar[bool] = True

    def __post_init__(self, validate: bool):
        """Copy the arrays, freeze them and check the series invariants."""
        self.time = _readonly(self.time)
        self.flux = _readonly(self.flux)

        if self.time.ndim != 1 or self.flux.ndim != 1:
            raise ValueError("Time and flux must be one-dimensional")

        if len(self.time) != len(self.flux):
            raise ValueError("Time and flux arrays must have same length")

        if len(self.flux) == 0:
            raise ValueError("Light curve cannot be empty")

        if validate and np.any(np.diff(self.time) <= 0):
            raise ValueError("Time must be strictly increasing")

    @property
    def length(self) -> int:
        """Return the number of data points in the light curve."""
        return len(self.flux)

    @property
    def duration(self) -> float:
        """Return the time span between first and last observation."""
        return float(self.time[-1] - self.time[0])

    def with_flux(self, flux: np.ndarray) -> 'LightCurve':
        """Return a new light curve sharing this curve's time axis."""
        return LightCurve(
            time=self.time,
            flux=flux,
            star_id=self.star_id,
            metadata=dict(self.metadata),
        )


@dataclass
class FeatureVector:
    """Summary statistics of one flux series."""

    mean: float
    variance: float
    std: float
    min: float
    max: float
    range: float
    skewness: float
    kurtosis: float

    def __post_init__(self):
        if self.variance < 0:
            raise ValueError("Variance must be non-negative")

        if not math.isclose(self.std, math.sqrt(self.variance), rel_tol=1e-9, abs_tol=1e-12):
            raise ValueError("std must equal sqrt(variance)")

        if not math.isclose(self.range, self.max - self.min, rel_tol=1e-12, abs_tol=0.0):
            raise ValueError("range must equal max - min")

    def to_dict(self) -> Dict[str, float]:
        return {name: float(getattr(self, name)) for name in FEATURE_NAMES}

    @classmethod
    def from_dict(cls, values: Mapping[str, float]) -> 'FeatureVector':
        missing = [name for name in FEATURE_NAMES if name not in values]
        if missing:
            raise ValueError(f"Missing features: {missing}")
        return cls(**{name: float(values[name]) for name in FEATURE_NAMES})

    def __getitem__(self, name: str) -> float:
        if name not in FEATURE_NAMES:
            raise KeyError(name)
        return float(getattr(self, name))


@dataclass
class BLSResult:
    """Best period hypothesis from the box transit grid search."""

    period: float
    depth: float
    score: float
    periods: np.ndarray = field(default_factory=lambda: np.empty(0), repr=False)
    scores: np.ndarray = field(default_factory=lambda: np.empty(0), repr=False)

    def __post_init__(self):
        if self.period < 0:
            raise ValueError("Period must be non-negative")

        if self.score < 0:
            raise ValueError("Score must be non-negative")

    @property
    def has_signal(self) -> bool:
        """True when some candidate period scored above zero."""
        return self.score > 0

    @property
    def is_dimming(self) -> bool:
        """True when the best candidate is a dip rather than a brightening."""
        return self.has_signal and self.depth > 0


@dataclass
class PredictionResult:
    """Classifier output for one light curve."""

    confidence: float
    saliency: np.ndarray
    star_id: Optional[str] = None
    model_version: Optional[str] = None

    def __post_init__(self):
        """Validate prediction result."""
        self.confidence = float(self.confidence)
        if not (0 <= self.confidence <= 1):
            raise ValueError("Confidence must be between 0 and 1")

        self.saliency = np.asarray(self.saliency, dtype=np.float64)

    @property
    def is_exoplanet(self) -> bool:
        """Thresholded classification (confidence > 0.5)."""
        return self.confidence > 0.5

    def to_dict(self) -> Dict[str, Any]:
        return {
            'star_id': self.star_id,
            'confidence': self.confidence,
            'is_exoplanet': self.is_exoplanet,
            'saliency': self.saliency.tolist(),
            'model_version': self.model_version,
        }


@dataclass
class EvaluationMetrics:
    """Classification metrics over one labeled batch."""

    accuracy: float
    precision: float
    recall: float
    f1_score: float
    roc_auc: float
    tp: int = 0
    tn: int = 0
    fp: int = 0
    fn: int = 0

    def __post_init__(self):
        for name in ('accuracy', 'precision', 'recall', 'f1_score', 'roc_auc'):
            value = getattr(self, name)
            if not (0 <= value <= 1):
                raise ValueError(f"{name} must be between 0 and 1, got {value}")

    @property
    def n_samples(self) -> int:
        return self.tp + self.tn + self.fp + self.fn

    def to_dict(self) -> Dict[str, float]:
        return {
            'accuracy': float(self.accuracy),
            'precision': float(self.precision),
            'recall': float(self.recall),
            'f1_score': float(self.f1_score),
            'roc_auc': float(self.roc_auc),
        }


# Configuration dataclass for preprocessing parameters
@dataclass
class PreprocessingConfig:
    """Configuration for detrending and classifier input shaping."""

    input_length: int = 200
    max_detrend_window: int = 101
    detrend_window_divisor: int = 10

    def __post_init__(self):
        """Validate preprocessing configuration."""
        if self.input_length <= 0:
            raise ValueError("Input length must be positive")

        if self.max_detrend_window < 0:
            raise ValueError("Detrend window must be non-negative")

        if self.detrend_window_divisor <= 0:
            raise ValueError("Detrend window divisor must be positive")


@dataclass
class BLSConfig:
    """Configuration for the box transit period search."""

    min_period: float = 0.5
    max_period_cap: float = 20.0
    num_periods: int = 100
    transit_phase_width: float = 0.1  # In-transit: phase < w or phase > 1 - w
    baseline_fraction: float = 3.0    # max period = baseline / baseline_fraction

    def __post_init__(self):
        if self.min_period <= 0:
            raise ValueError("Minimum period must be positive")

        if self.max_period_cap < self.min_period:
            raise ValueError("Maximum period cap must not be below minimum period")

        if self.num_periods <= 0:
            raise ValueError("Number of periods must be positive")

        if not (0 < self.transit_phase_width < 0.5):
            raise ValueError("Transit phase width must be in (0, 0.5)")

        if self.baseline_fraction <= 0:
            raise ValueError("Baseline fraction must be positive")


# Training configuration
@dataclass
class TrainingConfig:
    """Configuration for model training."""

    epochs: int = 20
    batch_size: int = 32
    learning_rate: float = 1e-3
    validation_split: float = 0.2
    shuffle_each_epoch: bool = True
    seed: Optional[int] = None
    show_progress: bool = False

    def __post_init__(self):
        """Validate training configuration."""
        if self.batch_size <= 0:
            raise ValueError("Batch size must be positive")

        if self.learning_rate <= 0:
            raise ValueError("Learning rate must be positive")

        if self.epochs <= 0:
            raise ValueError("Number of epochs must be positive")

        if not (0 <= self.validation_split < 1):
            raise ValueError("Validation split must be in [0, 1)")


def _default_store_dir() -> Path:
    env_dir = os.environ.get('EXOPLANET_AI_STORE_DIR')
    if env_dir:
        return Path(env_dir)
    return Path.home() / '.exoplanet_ai' / 'models'


@dataclass
class StoreConfig:
    """Where the local-store:// scheme keeps model blobs."""

    root_dir: Path = field(default_factory=_default_store_dir)

    def __post_init__(self):
        self.root_dir = Path(self.root_dir).expanduser()
