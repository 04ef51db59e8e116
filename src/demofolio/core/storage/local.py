"""
Local filesystem storage backend.

One file per key under ``base_path``. Writes go to a temp file and are
renamed into place so a crash never leaves a half-written value behind.
"""

import gzip
import os
import tempfile
import zlib
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path

from loguru import logger

from .base import StorageBackend, StorageError, StorageKeyError, StorageMetadata, StoragePermissionError

_GZ = ".gz"


class LocalStorage(StorageBackend):
    """Local filesystem storage backend with optional gzip compression."""

    def __init__(self, base_path: str = "~/.demofolio-data/storage", compress: bool = False, **config):
        super().__init__(**config)
        self.base_path = Path(base_path).expanduser().resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.compress = compress

    def _get_full_path(self, key: str) -> Path:
        """Resolve a storage key to an absolute path under ``base_path``.

        Rejects unsafe keys (absolute paths, traversal, empty keys, and
        backslash-delimited paths) to prevent writes outside ``base_path``.
        """
        raw_key = key.strip()
        if not raw_key:
            raise StoragePermissionError("Storage key cannot be empty.")
        if "\x00" in raw_key:
            raise StoragePermissionError("Storage key cannot contain null bytes.")
        if "\\" in raw_key:
            raise StoragePermissionError("Storage key cannot contain backslashes. Use '/' separators.")

        key_path = Path(raw_key)
        if key_path.is_absolute() or raw_key.startswith("~"):
            raise StoragePermissionError(f"Unsafe storage key '{key}': absolute paths are not allowed.")

        full_path = (self.base_path / key_path).resolve()
        try:
            full_path.relative_to(self.base_path)
        except ValueError as e:
            raise StoragePermissionError(f"Unsafe storage key '{key}': path traversal is not allowed.") from e
        return full_path

    def _existing_path(self, key: str) -> Path | None:
        path = self._get_full_path(key)
        if path.exists():
            return path
        gz_path = path.with_name(path.name + _GZ)
        if gz_path.exists():
            return gz_path
        return None

    def save(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> StorageMetadata:
        path = self._get_full_path(key)
        plain_path, gz_path = path, path.with_name(path.name + _GZ)
        target = gz_path if self.compress else plain_path
        stale = plain_path if self.compress else gz_path
        if self.compress:
            data = gzip.compress(data, mtime=0)

        target.parent.mkdir(parents=True, exist_ok=True)
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=".tmp-")
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, target)
            tmp_name = None
        except PermissionError as e:
            raise StoragePermissionError(f"Cannot write to {target}: {e}") from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

        if stale.exists():
            stale.unlink()

        stat = target.stat()
        logger.debug(f"Stored {key} ({stat.st_size} bytes)")
        return StorageMetadata(
            key=key,
            size=stat.st_size,
            modified_at=datetime.fromtimestamp(stat.st_mtime),
            content_type=content_type,
            compression="gzip" if self.compress else None,
        )

    def load(self, key: str) -> bytes:
        path = self._existing_path(key)
        if path is None:
            raise StorageKeyError(f"Key not found: {key}")
        try:
            data = path.read_bytes()
        except PermissionError as e:
            raise StoragePermissionError(f"Cannot read {path}: {e}") from e
        if path.name.endswith(_GZ):
            try:
                data = gzip.decompress(data)
            except (OSError, EOFError, zlib.error) as e:
                raise StorageError(f"Corrupt compressed value at {key}: {e}") from e
        return data

    def exists(self, key: str) -> bool:
        return self._existing_path(key) is not None

    def delete(self, key: str) -> bool:
        path = self._get_full_path(key)
        deleted = False
        for p in (path, path.with_name(path.name + _GZ)):
            if p.exists():
                p.unlink()
                deleted = True
        return deleted

    def list_keys(self, prefix: str = "", limit: int | None = None) -> Iterator[str]:
        count = 0
        for full_path in sorted(self.base_path.rglob("*")):
            if not full_path.is_file() or full_path.name.startswith(".tmp-"):
                continue
            key = full_path.relative_to(self.base_path).as_posix()
            if key.endswith(_GZ):
                key = key[: -len(_GZ)]
            if prefix and not key.startswith(prefix):
                continue
            yield key
            count += 1
            if limit and count >= limit:
                return
