"""Model parameter persistence."""

from .model_store import InMemoryStore, LocalFileStore, ModelStore, resolve_store

__all__ = [
    'InMemoryStore',
    'LocalFileStore',
    'ModelStore',
    'resolve_store'
]
