"""
Error taxonomy for the exoplanet detection core.

Degenerate inputs (empty BLS partitions, zero-variance flux) are reported
through sentinel values instead of exceptions. The classes below cover the
remaining failure modes: missing parameters, concurrent use during training
and model persistence.
"""

from typing import Optional


class ExoplanetAIError(Exception):
    """Base class for all errors raised by exoplanet_ai."""


class ModelNotInitializedError(ExoplanetAIError):
    """Raised when an operation needs a built or loaded parameter set."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            f"Model not initialized: call build_model() or load_model() before {operation}()"
        )


class ModelBusyError(ExoplanetAIError):
    """Raised when the parameter set is used while training is running."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Cannot {operation} while the model is training")


class PersistenceError(ExoplanetAIError):
    """Raised when the model store cannot be read or written."""

    def __init__(self, message: str, key: Optional[str] = None):
        self.key = key
        super().__init__(message)


class ModelNotFoundError(PersistenceError):
    """Raised when no model blob exists under the requested key."""

    def __init__(self, key: str):
        super().__init__(f"No saved model found for key '{key}'", key=key)


class CorruptModelError(ExoplanetAIError):
    """Raised when a stored model blob exists but cannot be restored."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Saved model '{key}' is unreadable: {reason}")
