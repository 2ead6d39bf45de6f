"""Blob storage for downloaded event photos."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = 'application/octet-stream'


class BlobStoreError(Exception):
    """Raised when a blob cannot be written, read or removed."""
    pass


@dataclass
class StoredBlob:
    """Bytes of a stored object plus the content type it was stored with."""
    data: bytes
    content_type: str


class BlobStore(ABC):
    """
    Base interface for photo storage backends.

    Keys are slash separated relative paths (e.g. 'events/12/<uuid>.jpg').
    """

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str) -> None:
        """Store `data` under `key`, replacing any existing object."""
        pass

    @abstractmethod
    def get(self, key: str) -> Optional[StoredBlob]:
        """Return the stored object, or None if the key is unknown."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove the object. Deleting an unknown key is not an error."""
        pass


class LocalBlobStore(BlobStore):
    """
    Blob store backed by a directory on the local filesystem.

    Each object is written to `<base_dir>/<key>`; its content type is kept
    in a `<key>.meta` file next to it.
    """

    META_SUFFIX = '.meta'

    def __init__(self, base_dir: Union[str, Path]):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        if not key:
            raise BlobStoreError("Blob key must not be empty")
        relative = PurePosixPath(key)
        if relative.is_absolute() or '..' in relative.parts:
            raise BlobStoreError(f"Invalid blob key: {key}")
        if key.endswith(self.META_SUFFIX):
            raise BlobStoreError(f"Blob key must not end in {self.META_SUFFIX}: {key}")
        return self.base_dir.joinpath(*relative.parts)

    def _meta_path(self, path: Path) -> Path:
        return path.with_name(path.name + self.META_SUFFIX)

    def put(self, key: str, data: bytes, content_type: str) -> None:
        path = self._path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
            self._meta_path(path).write_text(content_type or DEFAULT_CONTENT_TYPE, encoding='utf-8')
        except OSError as e:
            raise BlobStoreError(f"Failed to store blob {key}: {e}") from e
        logger.debug(f"Stored blob {key} ({len(data)} bytes)")

    def get(self, key: str) -> Optional[StoredBlob]:
        path = self._path_for(key)
        if not path.is_file():
            return None
        meta_path = self._meta_path(path)
        content_type = meta_path.read_text(encoding='utf-8').strip() if meta_path.is_file() else DEFAULT_CONTENT_TYPE
        return StoredBlob(data=path.read_bytes(), content_type=content_type)

    def delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
            self._meta_path(path).unlink(missing_ok=True)
        except OSError as e:
            raise BlobStoreError(f"Failed to delete blob {key}: {e}") from e
        logger.debug(f"Deleted blob {key}")
