from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from timeline_sync.db import DatabaseConfig, SessionError, with_retry
from timeline_sync.db.db_core import normalize_database_url
from timeline_sync.models import Event, EventPhoto


def test_config_prefers_explicit_url_and_normalizes_postgres_scheme() -> None:
    config = DatabaseConfig(database_url="postgres://user:pw@host/db")
    assert config.connection_url == "postgresql://user:pw@host/db"
    assert not config.is_sqlite
    assert config.get_engine_args()["pool_size"] == 3
    assert normalize_database_url("sqlite://") == "sqlite://"


def test_sqlite_config_uses_static_pool(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    config = DatabaseConfig(sqlite_path=tmp_path / "events.db")
    assert config.connection_url == f"sqlite:///{tmp_path / 'events.db'}"
    args = config.get_engine_args()
    assert args["connect_args"] == {"check_same_thread": False}
    assert "pool_size" not in args


def test_session_rolls_back_and_wraps_errors(database) -> None:
    with pytest.raises(SessionError):
        with database.session() as session:
            session.add(Event(event_name_line_1="Half written", origin="facebook"))
            session.flush()
            raise ValueError("boom")

    with database.session() as session:
        assert session.query(Event).count() == 0


def test_deleting_event_cascades_to_photos(database) -> None:
    with database.session() as session:
        event = Event(event_name_line_1="With photo", origin="facebook")
        session.add(event)
        session.flush()
        session.add(EventPhoto(event_id=event.id, storage_key="events/1/a.jpg", position=0))

    with database.session() as session:
        session.query(Event).delete(synchronize_session=False)

    with database.session() as session:
        assert session.query(EventPhoto).count() == 0


def test_with_retry_retries_operational_errors() -> None:
    calls = []

    @with_retry(max_attempts=3, delay=0)
    def flaky() -> str:
        calls.append(1)
        if len(calls) < 3:
            raise OperationalError("UPDATE events", {}, Exception("database is locked"))
        return "ok"

    assert flaky() == "ok"
    assert len(calls) == 3


def test_with_retry_gives_up_after_max_attempts() -> None:
    calls = []

    @with_retry(max_attempts=2, delay=0)
    def always_locked() -> None:
        calls.append(1)
        raise OperationalError("UPDATE events", {}, Exception("database is locked"))

    with pytest.raises(OperationalError):
        always_locked()
    assert len(calls) == 2


def test_with_retry_does_not_retry_other_errors() -> None:
    calls = []

    @with_retry(delay=0)
    def broken() -> None:
        calls.append(1)
        raise ValueError("bad input")

    with pytest.raises(ValueError):
        broken()
    assert len(calls) == 1
