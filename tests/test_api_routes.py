from __future__ import annotations

from typing import List

import pytest
from fastapi.testclient import TestClient

from timeline_sync.api import dependencies
from timeline_sync.api.app import app
from timeline_sync.api.routes import facebook_sync
from timeline_sync.clients import FeedUnavailable
from timeline_sync.config.external_services import WebhookConfig
from timeline_sync.config.sync import SyncSettings
from timeline_sync.models import Event, FeedPage, FeedPost
from timeline_sync.sync_manager import FacebookSyncManager, SyncRequest
from timeline_sync.utils.deduplication import DuplicateJanitor
from tests.conftest import FakeFeedClient, image_response


@pytest.fixture
def feed_client() -> FakeFeedClient:
    return FakeFeedClient({
        None: FeedPage(posts=[FeedPost(id="1_1", message="First"), FeedPost(id="1_2", message="Second")], next_cursor="c1"),
        "c1": FeedPage(posts=[FeedPost(id="1_3", message="Third")], next_cursor=None),
    })


@pytest.fixture
def scheduled() -> List[SyncRequest]:
    return []


@pytest.fixture
def client(database, blob_store, reconciler, feed_client, scheduled):
    manager = FacebookSyncManager(
        feed_client=feed_client,
        reconciler=reconciler,
        scheduler=scheduled.append,
        settings=SyncSettings(),
    )
    app.dependency_overrides[dependencies.get_database] = lambda: database
    app.dependency_overrides[dependencies.get_photo_store] = lambda: blob_store
    app.dependency_overrides[dependencies.get_reconciler] = lambda: reconciler
    app.dependency_overrides[dependencies.get_sync_manager] = lambda: manager
    app.dependency_overrides[dependencies.get_janitor] = lambda: DuplicateJanitor(database, blob_store)
    app.dependency_overrides[facebook_sync.get_webhook_config] = lambda: WebhookConfig(secret="s3cret")
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_health(client) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_create_event_requires_headline(client) -> None:
    response = client.post("/api/events", json={"event_description": "no title"})
    assert response.status_code == 400


def test_create_and_list_events(client, photo_session) -> None:
    photo_session.responses["https://cdn.test/a.jpg"] = image_response(b"aaa")

    response = client.post("/api/events", json={
        "event_name_line_1": "Wedding",
        "event_date": "2019-08-10",
        "photos": ["https://cdn.test/a.jpg", "https://cdn.test/missing.jpg"],
    })

    assert response.status_code == 200
    event_id = response.json()["id"]

    [event] = client.get("/api/events").json()
    assert event["id"] == event_id
    assert event["origin"] == "webflow"
    assert event["event_type"] == "memory"
    assert [photo["original_source_url"] for photo in event["photos"]] == ["https://cdn.test/a.jpg"]


def test_facebook_sync_runs_one_batch(client, database, feed_client, scheduled) -> None:
    response = client.post("/api/sync/facebook", params={"max": 2, "limit": 5, "chain": "true"})

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["processed"] == 2
    assert body["inserted"] == 2
    assert body["next_cursor"] == "c1"
    assert body["has_more"] is True
    assert feed_client.requested == [(None, 5)]
    assert scheduled[0].cursor == "c1"
    with database.session() as session:
        assert session.query(Event).count() == 2


def test_facebook_sync_surfaces_feed_errors(client, feed_client) -> None:
    feed_client.page_error = FeedUnavailable(500, "upstream down")

    response = client.post("/api/sync/facebook")

    assert response.status_code == 502
    assert response.json()["status"] == "error"


def test_webhook_verification(client) -> None:
    ok = client.get("/api/webhook/facebook", params={
        "hub.mode": "subscribe",
        "hub.verify_token": "s3cret",
        "hub.challenge": "12345",
    })
    assert ok.status_code == 200
    assert ok.text == "12345"

    denied = client.get("/api/webhook/facebook", params={
        "hub.mode": "subscribe",
        "hub.verify_token": "wrong",
        "hub.challenge": "12345",
    })
    assert denied.status_code == 401


def test_webhook_triggers_chained_sync(client, database, feed_client) -> None:
    response = client.post("/api/webhook/facebook", params={"token": "s3cret"}, json={"object": "page"})

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "message": "sync triggered"}
    # Background tasks have run by the time TestClient returns
    assert feed_client.requested
    with database.session() as session:
        assert session.query(Event).count() == 3


def test_webhook_rejects_wrong_token(client, feed_client) -> None:
    response = client.post("/api/webhook/facebook", params={"token": "nope"})

    assert response.status_code == 401
    assert feed_client.requested == []


def test_dedupe_route(client, database) -> None:
    with database.session() as session:
        for _ in range(3):
            session.add(Event(external_id="X", external_source="facebook_post", event_name_line_1="Dup", origin="facebook"))

    response = client.post("/api/maintenance/dedupe")

    assert response.json() == {"status": "ok", "events_removed": 2, "photos_removed": 0}


def test_serves_stored_photo(client, blob_store) -> None:
    blob_store.put("events/1/a.png", b"png-bytes", "image/png")

    response = client.get("/photos/events/1/a.png")

    assert response.status_code == 200
    assert response.content == b"png-bytes"
    assert response.headers["content-type"] == "image/png"
    assert response.headers["cache-control"] == "public, max-age=31536000, immutable"


def test_missing_photo_is_404(client) -> None:
    assert client.get("/photos/events/1/none.jpg").status_code == 404


def test_webflow_sync_route(client) -> None:
    class StubPusher:
        def push_pending(self):
            return {"events_synced": 4}

    app.dependency_overrides[dependencies.get_webflow_pusher] = lambda: StubPusher()

    response = client.post("/api/sync/webflow")

    assert response.json() == {"status": "ok", "events_synced": 4}


def test_unhandled_error_returns_status_error(database, blob_store) -> None:
    class BrokenJanitor:
        def dedupe(self):
            raise RuntimeError("store offline")

    app.dependency_overrides[dependencies.get_database] = lambda: database
    app.dependency_overrides[dependencies.get_janitor] = lambda: BrokenJanitor()
    try:
        with TestClient(app, raise_server_exceptions=False) as test_client:
            response = test_client.post("/api/maintenance/dedupe")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"status": "error", "error": "store offline"}


def test_content_type_sidecar_is_not_served(client, blob_store) -> None:
    blob_store.put("events/1/a.png", b"png-bytes", "image/png")

    assert client.get("/photos/events/1/a.png.meta").status_code == 404
