"""
Storage backends for demofolio.

Synchronous key-value storage with a pluggable backend interface
(local filesystem by default, in-memory for tests).
"""

from .base import (
    StorageBackend,
    StorageError,
    StorageKeyError,
    StorageMetadata,
    StoragePermissionError,
)
from .local import LocalStorage
from .memory import MemoryStorage

__all__ = [
    "LocalStorage",
    "MemoryStorage",
    "StorageBackend",
    "StorageError",
    "StorageKeyError",
    "StorageMetadata",
    "StoragePermissionError",
]
