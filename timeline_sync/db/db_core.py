"""Event store engine, sessions and errors.

Development runs on a SQLite file under `data/`; production points
DATABASE_URL at PostgreSQL. Everything else in the package talks to the
store through `Database.session()`.
"""

from contextlib import contextmanager
import logging
from pathlib import Path
from typing import Optional, Dict, Any, Generator
import os

from sqlalchemy import create_engine, Engine, event, inspect
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import scoped_session, sessionmaker, Session
from sqlalchemy.pool import StaticPool

from ..models import Base
from ..models.event import Event  # noqa
from ..models.event_photo import EventPhoto  # noqa
from ..config.environment import IS_PRODUCTION_ENVIRONMENT

logger = logging.getLogger(__name__)

DEFAULT_SQLITE_PATH = Path(__file__).parent.parent.parent / 'data' / 'events.db'


def normalize_database_url(url: str) -> str:
    """Hosting platforms hand out postgres:// URLs; SQLAlchemy only accepts postgresql://."""
    if url.startswith('postgres://'):
        return 'postgresql://' + url[len('postgres://'):]
    return url


class DatabaseConfig:
    """
    Where the event store lives and how connections are pooled.

    Resolution order for the URL: `database_url`, then DATABASE_URL, then
    a SQLite file (`sqlite_path` or data/events.db). Production refuses to
    fall back to SQLite.

    Args:
        database_url: Full SQLAlchemy URL
        sqlite_path: SQLite file used when no URL is configured
        echo: Log every SQL statement
        pool_size, max_overflow, pool_timeout, pool_recycle, pool_pre_ping:
            Connection pool settings; ignored for SQLite, which uses one shared connection

    Raises:
        ValueError: In production when no URL is configured
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        sqlite_path: Optional[Path] = None,
        echo: bool = False,
        pool_size: int = 3,
        max_overflow: int = 4,
        pool_timeout: int = 30,
        pool_recycle: int = 3600,
        pool_pre_ping: bool = True
    ):
        url = database_url or os.environ.get('DATABASE_URL')
        self.database_url = normalize_database_url(url) if url else None
        self.sqlite_path: Optional[Path] = None

        if not self.database_url:
            if IS_PRODUCTION_ENVIRONMENT:
                raise ValueError("DATABASE_URL is required in production; refusing to fall back to SQLite")
            self.sqlite_path = Path(sqlite_path) if sqlite_path else DEFAULT_SQLITE_PATH

        self.echo = echo
        self.pool = {
            'pool_size': pool_size,
            'max_overflow': max_overflow,
            'pool_timeout': pool_timeout,
            'pool_recycle': pool_recycle,
            'pool_pre_ping': pool_pre_ping,
        }

    @property
    def connection_url(self) -> str:
        return self.database_url or f"sqlite:///{self.sqlite_path}"

    @property
    def is_sqlite(self) -> bool:
        return self.connection_url.startswith('sqlite')

    def get_engine_args(self) -> Dict[str, Any]:
        """Keyword arguments for `create_engine`."""
        if self.is_sqlite:
            # One connection shared across threads; an in-memory database only exists on it
            return {
                'echo': self.echo,
                'connect_args': {'check_same_thread': False},
                'poolclass': StaticPool,
            }
        return {'echo': self.echo, **self.pool}


class DatabaseError(Exception):
    """Base class for event store errors."""
    pass


class ConnectionError(DatabaseError):
    """The engine could not be created."""
    pass


class SessionError(DatabaseError):
    """A unit of work failed and was rolled back."""
    pass


class StoreWriteFailed(DatabaseError):
    """An event or photo row could not be written; the post is retried on the next sync."""
    pass


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Database manager owning one engine and its session factory."""

    def __init__(self, config: Optional[DatabaseConfig] = None):
        self.config = config or DatabaseConfig()
        self.engine: Optional[Engine] = None
        self._tables_checked = False
        self._session_factory = sessionmaker(expire_on_commit=False)
        self._scoped_session = scoped_session(self._session_factory)

        self._setup_engine()

    def _setup_engine(self) -> None:
        """Set up the SQLAlchemy engine."""
        try:
            self.engine = create_engine(
                self.config.connection_url,
                **self.config.get_engine_args()
            )
            if self.config.is_sqlite:
                event.listen(self.engine, 'connect', _enable_sqlite_foreign_keys)
            self._session_factory.configure(bind=self.engine)
        except Exception as e:
            raise ConnectionError(f"Failed to create database engine: {e}") from e

    def _ensure_sqlite_directory(self) -> None:
        if self.config.sqlite_path:
            Path(self.config.sqlite_path).parent.mkdir(parents=True, exist_ok=True)

    def init_db(self) -> None:
        """Initialize the database schema."""
        if not self.engine:
            raise ConnectionError("Database engine not initialized")

        try:
            self._ensure_sqlite_directory()
            Base.metadata.create_all(self.engine)
            self._tables_checked = True
            logger.info("Database schema initialized successfully")
        except Exception as e:
            raise DatabaseError(f"Failed to initialize database schema: {e}") from e

    def ensure_tables_exist(self) -> None:
        """Ensure all required database tables exist."""
        if self._tables_checked:
            return
        if not self.engine:
            raise ConnectionError("Database engine not initialized")

        try:
            self._ensure_sqlite_directory()
            inspector = inspect(self.engine)
            existing_tables = inspector.get_table_names()
            required_tables = set(Base.metadata.tables.keys())

            if not required_tables.issubset(existing_tables):
                logger.info("Some tables missing, initializing database schema")
                Base.metadata.create_all(self.engine)
                logger.info("Database schema initialized successfully")

            self._tables_checked = True

        except Exception as e:
            raise DatabaseError(f"Failed to verify/create database schema: {e}") from e

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        One unit of work: commits on success, rolls back on any error.

        Objects stay usable after the block (expire_on_commit=False), so
        callers can return loaded rows.

        Example:
            with db.session() as session:
                session.get(Event, event_id).sync = SYNC_CLEAN

        Raises:
            OperationalError: Passed through unwrapped so `with_retry` can retry it
            SessionError: Any other failure inside the block
            DatabaseError: If the schema cannot be verified
        """
        self.ensure_tables_exist()

        session = self._scoped_session()
        try:
            yield session
            session.commit()
        except OperationalError:
            session.rollback()
            raise
        except Exception as e:
            session.rollback()
            raise SessionError(f"Database session error: {e}") from e
        finally:
            session.close()
            self._scoped_session.remove()

    def dispose(self) -> None:
        """Close all pooled connections."""
        if self.engine:
            self.engine.dispose()


# Global database instance with default configuration
db = Database()
