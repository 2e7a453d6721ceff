"""
Exoplanet detector: owns one classifier parameter set and exposes build,
train, predict, evaluate and persistence operations on it.
"""

import io
import logging
import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

import numpy as np
import torch

from ..data.types import (
    EvaluationMetrics,
    LightCurve,
    PredictionResult,
    PreprocessingConfig,
    StoreConfig,
    TrainingConfig,
)
from ..errors import CorruptModelError, ModelBusyError, ModelNotInitializedError, PersistenceError
from ..explainability.saliency import GradientSaliencyExplainer
from ..preprocessing.preprocessor import LightCurvePreprocessor
from ..storage.model_store import ModelStore, resolve_store
from ..training.metrics import MetricsCalculator
from ..training.trainer import ExoplanetTrainer
from .cnn import TransitCNN, create_cnn_model

MODEL_VERSION = 'v1.0.0-cnn-hybrid'
DEFAULT_MODEL_PATH = 'local-store://exoplanet-model'


class ExoplanetDetector:
    """
    Transit classifier with gradient saliency explanations.

    Each instance owns its parameters exclusively. Training is the only
    writer; predict, evaluate, save, load and build raise ModelBusyError
    while it runs, and training is refused while any of them is in progress.
    Use one instance per training session when several models are needed.
    """

    def __init__(
        self,
        preprocessing_config: Optional[PreprocessingConfig] = None,
        training_config: Optional[TrainingConfig] = None,
        store_config: Optional[StoreConfig] = None,
        store: Optional[ModelStore] = None,
        device: Optional[torch.device] = None,
        seed: Optional[int] = None
    ):
        """
        Initialize the detector without building a model.

        Args:
            preprocessing_config: Input shaping configuration
            training_config: Default training configuration
            store_config: Location of local-store:// blobs
            store: Store used for every path, overriding scheme resolution
            device: Device for the model (CPU if None)
            seed: Seed for weight initialization, shuffling and the split
        """
        self.preprocessor = LightCurvePreprocessor(preprocessing_config)
        self.training_config = training_config or TrainingConfig(seed=seed)
        self.store_config = store_config or StoreConfig()
        self.store = store
        self.device = device or torch.device('cpu')
        self.seed = seed
        self.logger = logging.getLogger(__name__)

        self.model: Optional[TransitCNN] = None
        self.model_version = MODEL_VERSION
        self.metrics_calculator = MetricsCalculator(threshold=0.5)

        self._state_lock = threading.Lock()
        self._training = False
        self._active_uses = 0

    @property
    def is_built(self) -> bool:
        return self.model is not None

    @property
    def is_training(self) -> bool:
        return self._training

    @property
    def input_length(self) -> int:
        return self.preprocessor.input_length

    @contextmanager
    def _shared_use(self, operation: str):
        """Register a non-training use of the model; refused while training runs."""
        with self._state_lock:
            if self._training:
                raise ModelBusyError(operation)
            self._active_uses += 1
        try:
            yield
        finally:
            with self._state_lock:
                self._active_uses -= 1

    @contextmanager
    def _exclusive_training(self):
        with self._state_lock:
            if self._training or self._active_uses:
                raise ModelBusyError('train')
            self._training = True
        try:
            yield
        finally:
            with self._state_lock:
                self._training = False

    def build_model(self, input_length: Optional[int] = None) -> TransitCNN:
        """
        Create a fresh, randomly initialized parameter set.

        Args:
            input_length: Model input width (defaults to the preprocessing config)

        Returns:
            The new model
        """
        with self._shared_use('build'):
            return self._build(input_length)

    def _build(self, input_length: Optional[int] = None) -> TransitCNN:
        if input_length is not None:
            self._set_input_length(input_length)

        self.model = self._create_model(self.preprocessor.input_length)
        self.model.to(self.device)
        self.model.eval()

        self.logger.info(
            "Built %s (%d parameters, input length %d)",
            self.model_version, self.model.count_parameters(), self.preprocessor.input_length
        )
        return self.model

    def _create_model(self, sequence_length: int, dropout_rate: float = 0.5) -> TransitCNN:
        if self.seed is None:
            return create_cnn_model(sequence_length, dropout_rate)

        generator = torch.Generator().manual_seed(self.seed)
        # Layer constructors also draw from the global RNG before re-initialization
        with torch.random.fork_rng(devices=[]):
            return create_cnn_model(sequence_length, dropout_rate, generator=generator)

    def _set_input_length(self, input_length: int):
        if input_length != self.preprocessor.input_length:
            config = replace(self.preprocessor.config, input_length=input_length)
            self.preprocessor = LightCurvePreprocessor(config)

    def _ensure_model(self) -> TransitCNN:
        if self.model is None:
            self._build()
        return self.model

    def train_model(
        self,
        curves: Sequence[LightCurve],
        labels: Sequence[int],
        epochs: int = 20,
        batch_size: int = 32,
        cancel_event: Optional[threading.Event] = None
    ) -> Dict[str, List[float]]:
        """
        Fit the classifier on labeled light curves.

        Builds the model first if none exists. 20% of the samples, chosen
        after shuffling, are held out for per-epoch monitoring.

        Args:
            curves: Training light curves (any length)
            labels: 0/1 labels, one per curve
            epochs: Number of epochs
            batch_size: Mini-batch size
            cancel_event: Stops training at the next epoch boundary once set

        Returns:
            History with per-epoch loss, accuracy, val_loss and val_accuracy
        """
        labels = np.asarray(labels)
        if len(curves) != len(labels):
            raise ValueError("Each light curve needs exactly one label")

        if len(curves) == 0:
            raise ValueError("Cannot train on an empty dataset")

        if not np.isin(labels, (0, 1)).all():
            raise ValueError("Labels must be 0 (no planet) or 1 (planet)")

        with self._exclusive_training():
            model = self._ensure_model()
            inputs = self.preprocessor.prepare_batch(curves)

            config = replace(self.training_config, epochs=epochs, batch_size=batch_size)

            trainer = ExoplanetTrainer(model, config=config, device=self.device)
            history = trainer.train(inputs, labels.astype(np.float32), epochs=epochs,
                                    cancel_event=cancel_event)

        return history

    def predict(self, curve: LightCurve) -> PredictionResult:
        """
        Score one light curve and explain the score.

        Args:
            curve: Light curve of any length

        Returns:
            Confidence, thresholded classification and per-step saliency
        """
        with self._shared_use('predict'):
            model = self._ensure_model()

            processed = torch.from_numpy(self.preprocessor.prepare(curve)).unsqueeze(0).to(self.device)

            model.eval()
            with torch.no_grad():
                confidence = float(model(processed).item())

            saliency = GradientSaliencyExplainer(model, self.device).explain(processed)

        return PredictionResult(
            confidence=confidence,
            saliency=saliency,
            star_id=curve.star_id,
            model_version=self.model_version
        )

    def predict_proba(self, curves: Sequence[LightCurve]) -> np.ndarray:
        """Confidences for many curves in one batched forward pass, without saliency."""
        with self._shared_use('predict'):
            model = self._ensure_model()

            inputs = torch.from_numpy(self.preprocessor.prepare_batch(curves)).to(self.device)

            model.eval()
            with torch.no_grad():
                return model(inputs).view(-1).cpu().numpy().astype(np.float64)

    def evaluate_model(
        self,
        curves: Sequence[LightCurve],
        labels: Sequence[int]
    ) -> EvaluationMetrics:
        """
        Confusion-matrix metrics and ROC-AUC over a labeled test set.

        Raises:
            ModelNotInitializedError: No model has been built or loaded
        """
        if self.model is None:
            raise ModelNotInitializedError('evaluate_model')

        if len(curves) != len(labels):
            raise ValueError("Each light curve needs exactly one label")

        probabilities = self.predict_proba(curves)
        return self.metrics_calculator.calculate_metrics(labels, probabilities)

    def _resolve(self, path: str):
        if self.store is not None:
            _, key = resolve_store(path, self.store_config)
            return self.store, key
        return resolve_store(path, self.store_config)

    def save_model(self, path: str = DEFAULT_MODEL_PATH) -> None:
        """
        Persist architecture, weights and version as one blob.

        Raises:
            ModelNotInitializedError: No model has been built or loaded
            PersistenceError: The store could not be written
        """
        with self._shared_use('save'):
            if self.model is None:
                raise ModelNotInitializedError('save_model')

            store, key = self._resolve(path)

            buffer = io.BytesIO()
            torch.save({
                'model_version': self.model_version,
                'architecture': self.model.get_model_info(),
                'state_dict': self.model.state_dict()
            }, buffer)

            store.save_blob(key, buffer.getvalue())
        self.logger.info("Saved model %s to %s", self.model_version, path)

    def load_model(self, path: str = DEFAULT_MODEL_PATH) -> TransitCNN:
        """
        Restore a saved parameter set, or build a fresh one if that fails.

        Loading never fails: a bad path, a missing or unreadable blob and a
        store read error are logged as warnings and a randomly initialized
        model is built instead.

        Returns:
            The loaded or freshly built model
        """
        with self._shared_use('load'):
            try:
                store, key = self._resolve(path)
                blob = store.load_blob(key)
                model = self._restore(key, blob)
            except (ValueError, PersistenceError, CorruptModelError) as e:
                self.logger.warning("Could not load model from %s (%s); building new model", path, e)
                return self._build()

            self.model = model
        self.logger.info("Loaded model %s from %s", self.model_version, path)
        return model

    def _restore(self, key: str, blob: bytes) -> TransitCNN:
        try:
            checkpoint = torch.load(io.BytesIO(blob), map_location=self.device, weights_only=True)
            architecture = checkpoint['architecture']
            with torch.random.fork_rng(devices=[]):
                model = create_cnn_model(
                    sequence_length=int(architecture['sequence_length']),
                    dropout_rate=float(architecture['dropout_rate'])
                )
            model.load_state_dict(checkpoint['state_dict'])
        except Exception as e:
            raise CorruptModelError(key, str(e)) from e

        self._set_input_length(model.sequence_length)

        model.to(self.device)
        model.eval()
        return model

    def get_model_version(self) -> str:
        """Architecture/weights generation tag. Training does not change it."""
        return self.model_version
