from __future__ import annotations

import pytest

from timeline_sync.clients import FacebookFeedClient, FeedUnavailable
from timeline_sync.config.external_services import FacebookConfig
from tests.conftest import FakeHttpSession, FakeResponse

FEED_URL = "https://graph.test/v24.0/page-1/feed"
PROFILE_URL = "https://graph.test/v24.0/page-1"


def _client(session: FakeHttpSession) -> FacebookFeedClient:
    config = FacebookConfig(
        graph_base_url="https://graph.test",
        api_version="v24.0",
        page_id="page-1",
        page_access_token="token-abc",
    )
    return FacebookFeedClient(config=config, session=session)


def test_fetch_page_parses_posts_and_cursor() -> None:
    session = FakeHttpSession({
        FEED_URL: FakeResponse(200, payload={
            "data": [
                {
                    "id": "1_2",
                    "message": "Hello",
                    "from": {"id": "9", "name": "Page Owner"},
                    "place": {"name": "Oslo"},
                    "attachments": {"data": [{
                        "type": "album",
                        "subattachments": {"data": [
                            {"type": "photo", "media": {"image": {"src": "https://cdn.test/a.jpg"}}},
                        ]},
                    }]},
                },
                {"id": "1_3", "story": "Page Owner updated their profile picture."},
            ],
            "paging": {"cursors": {"before": "b0", "after": "a1"}},
        }),
    })

    page = _client(session).fetch_page(cursor="a0", limit=500)

    assert [post.id for post in page.posts] == ["1_2", "1_3"]
    assert page.next_cursor == "a1"
    first = page.posts[0]
    assert first.from_name == "Page Owner"
    assert first.place_name == "Oslo"
    assert first.attachments[0].subattachments[0].image_src == "https://cdn.test/a.jpg"

    method, url, kwargs = session.calls[0]
    assert (method, url) == ("GET", FEED_URL)
    assert kwargs["params"]["after"] == "a0"
    assert kwargs["params"]["limit"] == "100"
    assert kwargs["params"]["access_token"] == "token-abc"
    assert "attachments{" in kwargs["params"]["fields"]


def test_fetch_page_without_next_cursor() -> None:
    session = FakeHttpSession({FEED_URL: FakeResponse(200, payload={"data": []})})

    page = _client(session).fetch_page()

    assert page.posts == []
    assert page.next_cursor is None
    assert "after" not in session.calls[0][2]["params"]
    assert session.calls[0][2]["params"]["limit"] == "25"


def test_non_success_status_raises_feed_unavailable() -> None:
    session = FakeHttpSession({FEED_URL: FakeResponse(400, payload={"error": {"message": "Invalid token"}})})

    with pytest.raises(FeedUnavailable) as excinfo:
        _client(session).fetch_page()

    assert excinfo.value.status_code == 400
    assert "Invalid token" in excinfo.value.body


def test_transport_error_raises_feed_unavailable(unreachable) -> None:
    session = FakeHttpSession()
    session.errors[FEED_URL] = unreachable

    with pytest.raises(FeedUnavailable) as excinfo:
        _client(session).fetch_page()

    assert excinfo.value.status_code is None


def test_fetch_author_profile() -> None:
    session = FakeHttpSession({
        PROFILE_URL: FakeResponse(200, payload={
            "name": "Page Owner",
            "picture": {"data": {"url": "https://cdn.test/me.jpg"}},
            "location": {"name": "Bergen"},
        }),
    })

    profile = _client(session).fetch_author_profile()

    assert profile.name == "Page Owner"
    assert profile.photo == "https://cdn.test/me.jpg"
    assert profile.location == "Bergen"


def test_config_validation_requires_page_and_token(monkeypatch) -> None:
    monkeypatch.delenv("FB_PAGE_ID", raising=False)
    monkeypatch.delenv("FB_PAGE_ACCESS_TOKEN", raising=False)
    monkeypatch.delenv("FB_GRAPH_API_VERSION", raising=False)

    with pytest.raises(ValueError):
        FacebookConfig(page_access_token="t").validate()
    with pytest.raises(ValueError):
        FacebookConfig(page_id="p").validate()
    assert FacebookConfig(page_id="p", page_access_token="t").base_url == "https://graph.facebook.com/v24.0"


class HtmlResponse(FakeResponse):
    def json(self):
        raise ValueError("Expecting value: line 1 column 1 (char 0)")


def test_non_json_success_body_raises_feed_unavailable() -> None:
    session = FakeHttpSession({FEED_URL: HtmlResponse(200, payload="<html>maintenance</html>")})

    with pytest.raises(FeedUnavailable) as excinfo:
        _client(session).fetch_page()

    assert excinfo.value.status_code == 200
    assert "maintenance" in excinfo.value.body
