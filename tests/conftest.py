from __future__ import annotations

import os

# The module-level database must not touch the repository's data directory
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from typing import Any, Dict, List, Optional, Tuple

import pytest
import requests

from timeline_sync.config.external_services import StorageConfig
from timeline_sync.db import Database, DatabaseConfig
from timeline_sync.models import AuthorProfile, FeedPage
from timeline_sync.post_handler import PostReconciler
from timeline_sync.storage import LocalBlobStore
from timeline_sync.utils.media import MediaDownloader


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        payload: Any = None,
        content: bytes = b"",
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.status_code = status_code
        self._payload = payload
        self.content = content
        self.headers = headers or {}
        self.text = "" if payload is None else str(payload)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self) -> Any:
        return self._payload


class FakeHttpSession:
    """Stands in for requests.Session; responses are keyed by URL without query string."""

    def __init__(self, responses: Optional[Dict[str, FakeResponse]] = None) -> None:
        self.responses = responses or {}
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []
        self.errors: Dict[str, Exception] = {}

    def _respond(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        key = url.split("?")[0]
        if key in self.errors:
            raise self.errors[key]
        return self.responses.get(key, FakeResponse(404, payload={"error": "not found"}))

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._respond("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._respond("POST", url, **kwargs)

    def patch(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._respond("PATCH", url, **kwargs)

    def calls_to(self, url: str) -> int:
        return sum(1 for _, called, _ in self.calls if called.split("?")[0] == url)


def image_response(data: bytes = b"\xff\xd8jpeg", content_type: str = "image/jpeg") -> FakeResponse:
    return FakeResponse(200, content=data, headers={"content-type": content_type})


class FakeFeedClient:
    """Serves prepared feed pages by cursor (None for the first page)."""

    def __init__(self, pages: Optional[Dict[Optional[str], FeedPage]] = None, profile: Optional[AuthorProfile] = None) -> None:
        self.pages = pages or {}
        self.profile = profile or AuthorProfile(name="Page Owner", photo="https://cdn.test/avatar.jpg")
        self.requested: List[Tuple[Optional[str], Optional[int]]] = []
        self.page_error: Optional[Exception] = None
        self.profile_error: Optional[Exception] = None

    def fetch_author_profile(self) -> AuthorProfile:
        if self.profile_error:
            raise self.profile_error
        return self.profile

    def fetch_page(self, cursor: Optional[str] = None, limit: Optional[int] = None) -> FeedPage:
        self.requested.append((cursor, limit))
        if self.page_error:
            raise self.page_error
        return self.pages.get(cursor, FeedPage())


@pytest.fixture
def database() -> Database:
    database = Database(DatabaseConfig(database_url="sqlite://"))
    database.init_db()
    yield database
    database.dispose()


@pytest.fixture
def blob_store(tmp_path) -> LocalBlobStore:
    return LocalBlobStore(tmp_path / "photos")


@pytest.fixture
def photo_session() -> FakeHttpSession:
    return FakeHttpSession()


@pytest.fixture
def downloader(blob_store, photo_session, tmp_path) -> MediaDownloader:
    config = StorageConfig(photo_dir=tmp_path / "photos", public_base_url="https://timeline.test")
    return MediaDownloader(blob_store, storage_config=config, session=photo_session)


@pytest.fixture
def reconciler(database, blob_store, downloader) -> PostReconciler:
    return PostReconciler(database=database, blob_store=blob_store, downloader=downloader)


@pytest.fixture
def unreachable() -> requests.exceptions.ConnectionError:
    return requests.exceptions.ConnectionError("connection refused")
