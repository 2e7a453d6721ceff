"""
Gradient saliency for the transit classifier.
"""

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np
import torch
import torch.nn as nn


class ExplainabilityMethod(ABC):
    """
    Abstract base class for input attribution methods.
    """

    def __init__(self, model: nn.Module, device: Optional[torch.device] = None):
        """
        Initialize explainability method.

        Args:
            model: Model to explain
            device: Device for computations
        """
        self.model = model
        self.device = device or next(model.parameters()).device

    @abstractmethod
    def explain(self, inputs: torch.Tensor) -> np.ndarray:
        """
        Generate attributions for one example.

        Args:
            inputs: Input tensor of shape (sequence_length,) or (1, sequence_length)

        Returns:
            Attribution per input position
        """
        pass


class GradientSaliencyExplainer(ExplainabilityMethod):
    """
    Absolute gradient of the output confidence with respect to each input step.

    The model runs in eval mode so dropout does not perturb the gradient.
    Nothing is cached between calls.
    """

    def explain(self, inputs: torch.Tensor) -> np.ndarray:
        inputs = torch.as_tensor(inputs, dtype=torch.float32, device=self.device)
        if inputs.dim() == 1:
            inputs = inputs.unsqueeze(0)

        if inputs.shape[0] != 1:
            raise ValueError("Saliency is computed for a single example")

        was_training = self.model.training
        self.model.eval()

        inputs = inputs.detach().clone().requires_grad_(True)
        try:
            confidence = self.model(inputs).squeeze()
            gradient = torch.autograd.grad(outputs=confidence, inputs=inputs)[0]
        finally:
            self.model.train(was_training)

        return gradient.abs().squeeze(0).detach().cpu().numpy().astype(np.float64)
