"""
Training loop for the transit classifier.
"""

import logging
import threading
import time
from typing import Dict, List, Optional, Tuple

import numpy as np
import torch
import torch.nn as nn
import torch.optim as optim
from torch.utils.data import DataLoader, TensorDataset
from tqdm import tqdm

from ..data.types import TrainingConfig


def get_device() -> torch.device:
    """Pick CUDA when available, else CPU."""
    if torch.cuda.is_available():
        return torch.device('cuda')
    return torch.device('cpu')


class ExoplanetTrainer:
    """
    Fits a binary classifier with binary cross-entropy and Adam.

    A held-out validation split is carved off after one shuffle of the
    samples and is used only for monitoring: there is no early stopping and
    no checkpointing of intermediate epochs.
    """

    def __init__(
        self,
        model: nn.Module,
        config: Optional[TrainingConfig] = None,
        device: Optional[torch.device] = None,
        generator: Optional[torch.Generator] = None
    ):
        """
        Initialize the trainer.

        Args:
            model: PyTorch model producing sigmoid probabilities of shape (batch, 1)
            config: Training configuration
            device: Device to use for training
            generator: Random generator for the split and batch shuffling
        """
        self.model = model
        self.config = config or TrainingConfig()
        self.device = device or get_device()
        self.logger = logging.getLogger(__name__)

        if generator is None:
            generator = torch.Generator()
            if self.config.seed is not None:
                generator.manual_seed(self.config.seed)
            else:
                generator.seed()
        self.generator = generator

        self.model.to(self.device)

        self.optimizer = optim.Adam(self.model.parameters(), lr=self.config.learning_rate)
        self.criterion = nn.BCELoss()

        self.current_epoch = 0
        self.training_history: Dict[str, List[float]] = {
            'loss': [],
            'accuracy': [],
            'val_loss': [],
            'val_accuracy': []
        }

    def split_train_val(
        self,
        inputs: torch.Tensor,
        targets: torch.Tensor
    ) -> Tuple[torch.Tensor, torch.Tensor, torch.Tensor, torch.Tensor]:
        """
        Shuffle once and hold out the last ``validation_split`` fraction.

        Returns:
            Tuple of (train_inputs, train_targets, val_inputs, val_targets)
        """
        n_samples = len(inputs)
        n_train = int(np.floor(n_samples * (1 - self.config.validation_split)))

        if n_train < 1:
            raise ValueError(
                f"Not enough samples ({n_samples}) for validation split "
                f"{self.config.validation_split}"
            )

        order = torch.randperm(n_samples, generator=self.generator)
        inputs = inputs[order]
        targets = targets[order]

        return inputs[:n_train], targets[:n_train], inputs[n_train:], targets[n_train:]

    def train_epoch(self, loader: DataLoader) -> Dict[str, float]:
        """
        Train for one epoch.

        Returns:
            Dictionary with mean loss and accuracy over the epoch
        """
        self.model.train()

        running_loss = 0.0
        correct = 0
        seen = 0

        progress_bar = tqdm(
            loader,
            desc=f"Epoch {self.current_epoch + 1}",
            disable=not self.config.show_progress
        )

        for data, targets in progress_bar:
            data = data.to(self.device)
            targets = targets.to(self.device)

            self.optimizer.zero_grad()

            outputs = self.model(data).view(-1)
            loss = self.criterion(outputs, targets)

            loss.backward()
            self.optimizer.step()

            running_loss += loss.item() * len(targets)
            correct += int(((outputs > 0.5).float() == targets).sum().item())
            seen += len(targets)

            progress_bar.set_postfix({'Loss': f"{loss.item():.4f}"})

        return {'loss': running_loss / seen, 'accuracy': correct / seen}

    def validate_epoch(self, inputs: torch.Tensor, targets: torch.Tensor) -> Dict[str, float]:
        """
        Score the held-out split without updating weights.

        Returns:
            Dictionary with loss and accuracy on the validation split
        """
        self.model.eval()

        with torch.no_grad():
            outputs = self.model(inputs.to(self.device)).view(-1)
            targets = targets.to(self.device)
            loss = self.criterion(outputs, targets)
            correct = ((outputs > 0.5).float() == targets).sum().item()

        return {'loss': loss.item(), 'accuracy': correct / len(targets)}

    def train(
        self,
        inputs: np.ndarray,
        labels: np.ndarray,
        epochs: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> Dict[str, List[float]]:
        """
        Train the model for the given number of epochs.

        Args:
            inputs: Array of shape (n_samples, sequence_length)
            labels: Array of 0/1 labels
            epochs: Number of epochs (uses config if None)
            cancel_event: Checked before each epoch; training stops once set

        Returns:
            Training history with per-epoch loss, accuracy, val_loss, val_accuracy
        """
        epochs = epochs or self.config.epochs

        x = torch.as_tensor(np.asarray(inputs), dtype=torch.float32)
        y = torch.as_tensor(np.asarray(labels), dtype=torch.float32)

        train_x, train_y, val_x, val_y = self.split_train_val(x, y)

        loader = DataLoader(
            TensorDataset(train_x, train_y),
            batch_size=self.config.batch_size,
            shuffle=self.config.shuffle_each_epoch,
            generator=self.generator
        )

        self.logger.info(
            "Training for %d epochs on %d samples (%d held out) on %s",
            epochs, len(train_x), len(val_x), self.device
        )

        start_time = time.time()

        for epoch in range(epochs):
            if cancel_event is not None and cancel_event.is_set():
                self.logger.info("Training cancelled before epoch %d", epoch + 1)
                break

            self.current_epoch = epoch

            train_metrics = self.train_epoch(loader)
            self.training_history['loss'].append(train_metrics['loss'])
            self.training_history['accuracy'].append(train_metrics['accuracy'])

            if len(val_x) > 0:
                val_metrics = self.validate_epoch(val_x, val_y)
                self.training_history['val_loss'].append(val_metrics['loss'])
                self.training_history['val_accuracy'].append(val_metrics['accuracy'])
                self.logger.info(
                    "Epoch %d: loss = %.4f, acc = %.4f, val_loss = %.4f, val_acc = %.4f",
                    epoch + 1, train_metrics['loss'], train_metrics['accuracy'],
                    val_metrics['loss'], val_metrics['accuracy']
                )
            else:
                self.logger.info(
                    "Epoch %d: loss = %.4f, acc = %.4f",
                    epoch + 1, train_metrics['loss'], train_metrics['accuracy']
                )

        self.model.eval()
        self.logger.info("Training completed in %.2f seconds", time.time() - start_time)

        return self.training_history
