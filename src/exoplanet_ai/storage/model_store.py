"""
Key-value blob stores for persisted model parameters.

Model paths are scheme-prefixed strings such as ``local-store://exoplanet-model``.
Each blob is written and read as a whole; partial writes never become visible.
"""

import logging
import os
import re
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

from ..data.types import StoreConfig
from ..errors import ModelNotFoundError, PersistenceError

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r'^[A-Za-z0-9._-]+$')


class ModelStore(ABC):
    """Abstract whole-blob store addressed by string keys."""

    @abstractmethod
    def save_blob(self, key: str, data: bytes) -> None:
        """Store ``data`` under ``key``, replacing any previous blob atomically."""
        pass

    @abstractmethod
    def load_blob(self, key: str) -> bytes:
        """Return the blob under ``key``; raise ModelNotFoundError if absent."""
        pass

    @abstractmethod
    def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass


class InMemoryStore(ModelStore):
    """Process-local store backed by a dict."""

    def __init__(self):
        self._blobs: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def save_blob(self, key: str, data: bytes) -> None:
        with self._lock:
            self._blobs[key] = bytes(data)

    def load_blob(self, key: str) -> bytes:
        with self._lock:
            if key not in self._blobs:
                raise ModelNotFoundError(key)
            return self._blobs[key]

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._blobs

    def delete(self, key: str) -> None:
        with self._lock:
            self._blobs.pop(key, None)


class LocalFileStore(ModelStore):
    """
    One file per key under a root directory.

    Writes go to a temporary file in the same directory and are moved into
    place with ``os.replace``, so readers see either the old or the new blob.
    """

    suffix = '.pt'

    def __init__(self, root_dir: Union[str, Path]):
        self.root_dir = Path(root_dir)

    def _path_for(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid model key: {key!r}")
        return self.root_dir / f"{key}{self.suffix}"

    def save_blob(self, key: str, data: bytes) -> None:
        path = self._path_for(key)
        tmp_path = None
        try:
            self.root_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.root_dir, prefix=f".{key}.", suffix='.tmp')
            with os.fdopen(fd, 'wb') as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise PersistenceError(f"Failed to save model '{key}' to {path}: {e}", key=key) from e

        logger.debug("Wrote %d bytes to %s", len(data), path)

    def load_blob(self, key: str) -> bytes:
        path = self._path_for(key)
        if not path.exists():
            raise ModelNotFoundError(key)

        try:
            return path.read_bytes()
        except OSError as e:
            raise PersistenceError(f"Failed to read model '{key}' from {path}: {e}", key=key) from e

    def exists(self, key: str) -> bool:
        return self._path_for(key).exists()

    def delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise PersistenceError(f"Failed to delete model '{key}': {e}", key=key) from e


# memory:// keys live for the whole process
_MEMORY_STORE = InMemoryStore()

LOCAL_SCHEMES = ('local-store', 'localstorage')


def resolve_store(path: str, config: Optional[StoreConfig] = None) -> Tuple[ModelStore, str]:
    """
    Map a scheme-prefixed model path to a store and key.

    Supported schemes:
        local-store://name (alias localstorage://name): file under config.root_dir
        memory://name: process-wide in-memory store
        file:///dir/name: file under /dir

    Args:
        path: Model path
        config: Store configuration for local-store paths

    Returns:
        Tuple of (store, key)
    """
    if '://' not in path:
        raise ValueError(f"Model path must be scheme-prefixed, got {path!r}")

    scheme, _, name = path.partition('://')
    if not name:
        raise ValueError(f"Model path has no name: {path!r}")

    if scheme in LOCAL_SCHEMES:
        config = config or StoreConfig()
        return LocalFileStore(config.root_dir), name

    if scheme == 'memory':
        return _MEMORY_STORE, name

    if scheme == 'file':
        file_path = Path(name)
        key = file_path.name
        if key.endswith(LocalFileStore.suffix):
            key = key[:-len(LocalFileStore.suffix)]
        return LocalFileStore(file_path.parent), key

    raise ValueError(f"Unknown model store scheme: {scheme!r}")
