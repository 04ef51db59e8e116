"""
Abstract base class for key-value storage backends.

Provides a small synchronous interface (save/load/exists/delete/list) so
the same repository code runs against the local filesystem or memory.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime


@dataclass
class StorageMetadata:
    """Metadata for stored objects."""

    key: str
    size: int
    modified_at: datetime
    content_type: str
    compression: str | None = None


class StorageBackend(ABC):
    """Abstract base class for storage backends."""

    def __init__(self, **config):
        self.config = config

    @abstractmethod
    def save(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> StorageMetadata:
        """Save data under ``key``, replacing any previous value."""

    @abstractmethod
    def load(self, key: str) -> bytes:
        """Load data from storage. Raises StorageKeyError if not found."""

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Check if a key exists in storage."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete an object. Returns True if deleted, False if didn't exist."""

    @abstractmethod
    def list_keys(self, prefix: str = "", limit: int | None = None) -> Iterator[str]:
        """List keys with optional prefix filter."""


class StorageError(Exception):
    """Base exception for storage errors."""


class StorageKeyError(StorageError, KeyError):
    """Raised when a storage key doesn't exist."""


class StoragePermissionError(StorageError):
    """Raised when storage operation is not permitted."""
