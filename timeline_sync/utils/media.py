"""Photo download and storage helpers.

Downloads photos referenced by upstream posts and stores the bytes
unchanged in the blob store.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

import requests

from ..config.external_services import StorageConfig, get_storage_config
from ..storage import BlobStore, BlobStoreError

logger = logging.getLogger(__name__)

DEFAULT_PHOTO_CONTENT_TYPE = 'image/jpeg'


class PhotoFetchFailed(Exception):
    """Raised when a photo cannot be downloaded or stored."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch photo {url}: {reason}")


@dataclass
class DownloadedMedia:
    data: bytes
    content_type: str


@dataclass
class StoredPhoto:
    """Where a downloaded photo ended up."""
    storage_key: str
    public_url: str
    content_type: str


def guess_extension(content_type: str) -> str:
    """File extension for an image content type, jpg when unknown."""
    content_type = (content_type or '').lower()
    if 'png' in content_type:
        return 'png'
    if 'webp' in content_type:
        return 'webp'
    if 'gif' in content_type:
        return 'gif'
    return 'jpg'


def build_public_photo_url(storage_key: str, public_base_url: Optional[str] = None) -> str:
    """Address a stored photo is served from (see the /photos route)."""
    base = (public_base_url or '').rstrip('/')
    if base:
        return f"{base}/photos/{storage_key}"
    return f"/photos/{storage_key}"


class MediaDownloader:
    """
    Downloads photos from upstream URLs and writes them to a blob store.
    """

    def __init__(
        self,
        blob_store: BlobStore,
        storage_config: Optional[StorageConfig] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0
    ):
        self.blob_store = blob_store
        self.storage_config = storage_config or get_storage_config()
        self.session = session or requests.Session()
        self.timeout = timeout

    def _new_storage_key(self, event_id: int, content_type: str) -> str:
        return f"events/{event_id}/{uuid.uuid4()}.{guess_extension(content_type)}"

    def download(self, url: str) -> DownloadedMedia:
        """
        Download one photo.

        Raises:
            PhotoFetchFailed: On transport errors or a non-success status
        """
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise PhotoFetchFailed(url, str(e)) from e

        if not response.ok:
            raise PhotoFetchFailed(url, f"status {response.status_code}")

        content_type = response.headers.get('content-type') or DEFAULT_PHOTO_CONTENT_TYPE
        return DownloadedMedia(data=response.content, content_type=content_type)

    def persist_photo(self, event_id: int, url: str) -> StoredPhoto:
        """
        Download a photo and store it under a fresh key for the event.

        Args:
            event_id: Owning event, used as the key prefix
            url: Upstream photo URL

        Returns:
            StoredPhoto: Storage key, public URL and content type

        Raises:
            PhotoFetchFailed: If the download or the blob write fails
        """
        media = self.download(url)
        storage_key = self._new_storage_key(event_id, media.content_type)

        try:
            self.blob_store.put(storage_key, media.data, media.content_type)
        except BlobStoreError as e:
            raise PhotoFetchFailed(url, str(e)) from e

        logger.debug(f"Stored photo for event {event_id}: {storage_key} ({len(media.data) // 1024}KB)")
        return StoredPhoto(
            storage_key=storage_key,
            public_url=build_public_photo_url(storage_key, self.storage_config.public_base_url),
            content_type=media.content_type,
        )
