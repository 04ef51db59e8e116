"""
In-memory storage backend.

Backs tests and throwaway demo sessions; nothing survives the process.
"""

import threading
from collections.abc import Iterator
from datetime import datetime

from .base import StorageBackend, StorageKeyError, StorageMetadata


class MemoryStorage(StorageBackend):
    """Dict-backed storage backend."""

    def __init__(self, **config):
        super().__init__(**config)
        self._data: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def save(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> StorageMetadata:
        with self._lock:
            self._data[key] = bytes(data)
        return StorageMetadata(key=key, size=len(data), modified_at=datetime.now(), content_type=content_type)

    def load(self, key: str) -> bytes:
        with self._lock:
            try:
                return self._data[key]
            except KeyError:
                raise StorageKeyError(f"Key not found: {key}") from None

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._data

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def list_keys(self, prefix: str = "", limit: int | None = None) -> Iterator[str]:
        with self._lock:
            keys = sorted(k for k in self._data if k.startswith(prefix))
        yield from (keys[:limit] if limit else keys)
