"""
1D CNN transit classifier over fixed-length flux windows.
"""

import math

import torch
import torch.nn as nn
import torch.nn.functional as F
from typing import Dict, Optional, Tuple


def _xavier_uniform_(weight: torch.Tensor, generator: Optional[torch.Generator] = None):
    # Same bound as nn.init.xavier_uniform_, drawn from an explicit generator
    receptive_field = weight[0][0].numel()
    fan_in = weight.size(1) * receptive_field
    fan_out = weight.size(0) * receptive_field
    bound = math.sqrt(6.0 / (fan_in + fan_out))
    with torch.no_grad():
        weight.uniform_(-bound, bound, generator=generator)


class TransitCNN(nn.Module):
    """
    Binary 1D CNN scoring a normalized flux window for a transit signal.

    Architecture:
    - Input: 1D array length 200, reshaped to a single channel
    - Conv1D(32, kernel=5, same) → ReLU → MaxPool(2)
    - Conv1D(64, kernel=3, same) → ReLU → MaxPool(2)
    - Conv1D(128, kernel=3, same) → ReLU
    - GlobalMaxPool → Dense(64) → ReLU → Dropout(0.5)
    - Dense(32) → ReLU → Dense(1) → Sigmoid
    """

    def __init__(
        self,
        sequence_length: int = 200,
        dropout_rate: float = 0.5,
        generator: Optional[torch.Generator] = None
    ):
        """
        Initialize the CNN model.

        Args:
            sequence_length: Length of input sequences
            dropout_rate: Dropout rate after the first dense layer
            generator: Random generator for the initial weights (global RNG if None)
        """
        super(TransitCNN, self).__init__()

        if sequence_length < 4:
            raise ValueError("Sequence length must be at least 4 for two pooling stages")

        self.sequence_length = sequence_length
        self.dropout_rate = dropout_rate

        # Convolutional layers
        self.conv1 = nn.Conv1d(1, 32, kernel_size=5, padding='same')
        self.conv2 = nn.Conv1d(32, 64, kernel_size=3, padding='same')
        self.conv3 = nn.Conv1d(64, 128, kernel_size=3, padding='same')

        self.pool = nn.MaxPool1d(kernel_size=2, stride=2)

        # Fully connected layers
        self.fc1 = nn.Linear(128, 64)
        self.dropout = nn.Dropout(dropout_rate)
        self.fc2 = nn.Linear(64, 32)
        self.fc3 = nn.Linear(32, 1)

        self._initialize_weights(generator)

    def _initialize_weights(self, generator: Optional[torch.Generator] = None):
        """Glorot-uniform weights and zero biases for every layer."""
        for m in self.modules():
            if isinstance(m, (nn.Conv1d, nn.Linear)):
                _xavier_uniform_(m.weight, generator)
                nn.init.constant_(m.bias, 0)

    def get_features(self, x: torch.Tensor) -> torch.Tensor:
        """
        Convolutional embedding after global max pooling.

        Args:
            x: Input tensor of shape (batch_size, sequence_length)

        Returns:
            Tensor of shape (batch_size, 128)
        """
        x = x.unsqueeze(1)

        x = self.pool(F.relu(self.conv1(x)))
        x = self.pool(F.relu(self.conv2(x)))
        x = F.relu(self.conv3(x))

        # Global max pool over the time axis
        return torch.amax(x, dim=-1)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """
        Forward pass through the network.

        Args:
            x: Input tensor of shape (batch_size, sequence_length)

        Returns:
            Output tensor of shape (batch_size, 1) with sigmoid activation
        """
        x = self.get_features(x)

        x = F.relu(self.fc1(x))
        x = self.dropout(x)
        x = F.relu(self.fc2(x))
        x = torch.sigmoid(self.fc3(x))

        return x

    def count_parameters(self) -> int:
        """Count the number of trainable parameters."""
        return sum(p.numel() for p in self.parameters() if p.requires_grad)

    def get_model_info(self) -> Dict:
        """Architecture description stored alongside the weights."""
        return {
            'model_type': 'TransitCNN',
            'sequence_length': self.sequence_length,
            'dropout_rate': self.dropout_rate,
            'total_parameters': self.count_parameters()
        }


def create_cnn_model(
    sequence_length: int = 200,
    dropout_rate: float = 0.5,
    generator: Optional[torch.Generator] = None
) -> TransitCNN:
    """
    Factory function to create CNN model with standard configuration.

    Args:
        sequence_length: Length of input sequences
        dropout_rate: Dropout rate
        generator: Random generator for the initial weights

    Returns:
        Configured TransitCNN model
    """
    return TransitCNN(
        sequence_length=sequence_length, dropout_rate=dropout_rate, generator=generator
    )


def model_summary(model: TransitCNN, input_shape: Tuple[int, int]) -> str:
    """
    Generate a summary of the model architecture.

    Args:
        model: The CNN model
        input_shape: Shape of input tensor (batch_size, sequence_length)

    Returns:
        String summary of the model
    """
    summary_lines = []
    summary_lines.append("=" * 60)
    summary_lines.append("TransitCNN Model Summary")
    summary_lines.append("=" * 60)

    info = model.get_model_info()
    summary_lines.append(f"Sequence Length: {info['sequence_length']}")
    summary_lines.append(f"Dropout Rate: {info['dropout_rate']}")
    summary_lines.append(f"Total Parameters: {info['total_parameters']:,}")

    summary_lines.append("-" * 60)
    summary_lines.append("Layer Architecture:")
    summary_lines.append("-" * 60)

    # Simulate forward pass to get layer shapes
    was_training = model.training
    model.eval()
    with torch.no_grad():
        x = torch.zeros(input_shape).unsqueeze(1)

        x = model.conv1(x)
        summary_lines.append(f"Conv1D(32, k=5): {list(x.shape)}")
        x = model.pool(F.relu(x))
        summary_lines.append(f"MaxPool1D(2): {list(x.shape)}")

        x = model.conv2(x)
        summary_lines.append(f"Conv1D(64, k=3): {list(x.shape)}")
        x = model.pool(F.relu(x))
        summary_lines.append(f"MaxPool1D(2): {list(x.shape)}")

        x = model.conv3(x)
        summary_lines.append(f"Conv1D(128, k=3): {list(x.shape)}")
        x = torch.amax(F.relu(x), dim=-1)
        summary_lines.append(f"GlobalMaxPool1D: {list(x.shape)}")

        x = model.fc1(x)
        summary_lines.append(f"Linear(64): {list(x.shape)}")
        x = model.fc2(F.relu(x))
        summary_lines.append(f"Linear(32): {list(x.shape)}")
        x = model.fc3(F.relu(x))
        summary_lines.append(f"Linear(1): {list(x.shape)}")
    model.train(was_training)

    summary_lines.append("=" * 60)

    return "\n".join(summary_lines)
