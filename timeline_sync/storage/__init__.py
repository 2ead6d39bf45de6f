"""Photo blob storage."""

from typing import Optional

from .blob_store import BlobStore, BlobStoreError, LocalBlobStore, StoredBlob
from ..config.external_services import get_storage_config

_blob_store: Optional[BlobStore] = None


def get_blob_store() -> BlobStore:
    """Module-level blob store built from the storage configuration."""
    global _blob_store

    if _blob_store is None:
        _blob_store = LocalBlobStore(get_storage_config().photo_dir)

    return _blob_store


__all__ = [
    'BlobStore',
    'BlobStoreError',
    'LocalBlobStore',
    'StoredBlob',
    'get_blob_store',
]
