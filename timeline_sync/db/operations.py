"""Retry helper for store writes.

SQLite reports a locked database and PostgreSQL a dropped connection as
`OperationalError`; both usually succeed when tried again a moment later.
`Database.session()` lets these through unwrapped so the decorator below
can see them.
"""

import logging
import time
from functools import wraps
from typing import Any, Callable, Tuple, Type, TypeVar

from sqlalchemy.exc import OperationalError

logger = logging.getLogger(__name__)

T = TypeVar('T')


def with_retry(
    max_attempts: int = 3,
    delay: float = 0.1,
    backoff: float = 2,
    exceptions: Tuple[Type[BaseException], ...] = (OperationalError,)
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Retry a store operation on transient driver errors.

    Args:
        max_attempts: Calls made before the last error is re-raised
        delay: Pause before the second call, in seconds
        backoff: Factor applied to the pause after every failed call
        exceptions: Error types considered transient

    Example:
        @with_retry()
        def _mark_synced(self, event_id: int) -> None:
            with self.database.session() as session:
                session.get(Event, event_id).sync = SYNC_CLEAN
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            pause = delay
            attempt = 1
            while True:
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= max_attempts:
                        logger.error(f"{func.__name__} failed after {attempt} attempts: {e}")
                        raise
                    logger.warning(
                        f"{func.__name__} hit a transient store error "
                        f"(attempt {attempt}/{max_attempts}), retrying in {pause}s: {e}"
                    )
                    time.sleep(pause)
                    pause *= backoff
                    attempt += 1

        return wrapper
    return decorator
