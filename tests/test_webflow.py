from __future__ import annotations

import pytest

from timeline_sync.cms import WebflowPusher, map_event_to_fields, slugify
from timeline_sync.config.external_services import WebflowConfig
from timeline_sync.models import Event, EventPhoto, ORIGIN_FACEBOOK, ORIGIN_WEBFLOW, SYNC_CLEAN, SYNC_PENDING
from tests.conftest import FakeHttpSession, FakeResponse

ITEMS_URL = "https://webflow.test/v2/collections/col-1/items"


@pytest.fixture
def webflow_session() -> FakeHttpSession:
    return FakeHttpSession({ITEMS_URL: FakeResponse(202, payload={"items": [{"id": "wf-1"}]})})


@pytest.fixture
def pusher(database, webflow_session) -> WebflowPusher:
    config = WebflowConfig(base_url="https://webflow.test/v2", collection_id="col-1", api_token="wf-token")
    return WebflowPusher(database=database, config=config, session=webflow_session)


def _add_event(database, origin: str = ORIGIN_FACEBOOK, sync: int = SYNC_PENDING, photos: int = 0) -> int:
    with database.session() as session:
        event = Event(
            external_id="123_456",
            external_source="facebook_post",
            event_date="2020-05-01",
            event_name_line_1="Graduation Day!",
            event_name_line_2="Finally done",
            origin=origin,
            sync=sync,
        )
        session.add(event)
        session.flush()
        for position in range(photos):
            session.add(EventPhoto(
                event_id=event.id,
                storage_key=f"events/{event.id}/{position}.jpg",
                public_url=f"https://timeline.test/photos/events/{event.id}/{position}.jpg",
                original_source_url=f"https://cdn.test/{position}.jpg",
                position=position,
            ))
        return event.id


def _event(database, event_id: int) -> Event:
    with database.session() as session:
        return session.get(Event, event_id)


def test_slugify() -> None:
    assert slugify("Graduation Day!") == "graduation-day"
    assert slugify("!!!") == "memory"
    assert len(slugify("word " * 40)) <= 80


def test_map_event_to_fields_sets_flags_only_on_create(database) -> None:
    event = _event(database, _add_event(database))

    created = map_event_to_fields(event, [], is_update=False)
    updated = map_event_to_fields(event, [], is_update=True)

    assert created["name"] == "Graduation Day!"
    assert created["slug"] == "graduation-day"
    assert created["permalink"] == "123_456"
    assert created["active"] is True and created["approved"] is True
    assert "active" not in updated and "approved" not in updated


def test_push_creates_item_and_records_id(pusher, database, webflow_session) -> None:
    event_id = _add_event(database, photos=3)

    result = pusher.push_pending()

    assert result == {"events_synced": 1}
    event = _event(database, event_id)
    assert event.cms_item_id == "wf-1"
    assert event.sync == SYNC_CLEAN
    assert event.external_id == "123_456"

    method, url, kwargs = webflow_session.calls[0]
    assert (method, url) == ("POST", ITEMS_URL)
    assert kwargs["headers"]["Authorization"] == "Bearer wf-token"
    fields = kwargs["json"]["items"][0]["fieldData"]
    assert fields["photo-1"].endswith("/0.jpg")
    assert fields["photo-2"].endswith("/1.jpg")


def test_second_push_updates_same_item(pusher, database, webflow_session) -> None:
    event_id = _add_event(database)
    pusher.push_pending()
    with database.session() as session:
        session.get(Event, event_id).sync = SYNC_PENDING
    webflow_session.responses[f"{ITEMS_URL}/wf-1"] = FakeResponse(200, payload={"id": "wf-1"})

    pusher.push_pending()

    method, url, _ = webflow_session.calls[-1]
    assert (method, url) == ("PATCH", f"{ITEMS_URL}/wf-1")
    assert _event(database, event_id).sync == SYNC_CLEAN


def test_failed_push_keeps_event_pending(pusher, database, webflow_session) -> None:
    event_id = _add_event(database)
    webflow_session.responses[ITEMS_URL] = FakeResponse(400, payload={"message": "Validation failure"})

    assert pusher.push_pending() == {"events_synced": 0}
    assert _event(database, event_id).sync == SYNC_PENDING


def test_only_pending_feed_events_are_pushed(pusher, database, webflow_session) -> None:
    _add_event(database, origin=ORIGIN_WEBFLOW)
    _add_event(database, sync=SYNC_CLEAN)

    assert pusher.push_pending() == {"events_synced": 0}
    assert webflow_session.calls == []
