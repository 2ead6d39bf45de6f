"""In-process queue for chained sync batches.

A batch that stops at its work limit hands the rest of the feed to this
queue as a new request instead of calling the service over HTTP. Requests
run one at a time on a single worker thread, after the submitting batch has
returned; a failed link is logged and the chain simply ends there until the
next scheduled run starts a new one.
"""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait as wait_for_futures
from typing import Any, Callable, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class ContinuationQueue(Generic[T]):
    """Single-worker, fire-and-forget task queue."""

    def __init__(self, runner: Callable[[T], Any], name: str = 'sync-continuation'):
        self.runner = runner
        self.name = name
        self._executor: Optional[ThreadPoolExecutor] = None
        self._pending: List[Future] = []
        self._lock = threading.Lock()

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=self.name)
        return self._executor

    def _on_done(self, future: Future) -> None:
        with self._lock:
            if future in self._pending:
                self._pending.remove(future)
        if future.cancelled():
            logger.warning("Chained batch was cancelled")
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Chained batch failed: {error}")
        else:
            logger.info(f"Chained batch completed: {future.result()}")

    def enqueue(self, item: T) -> Future:
        """Schedule `runner(item)` and return without waiting for it."""
        with self._lock:
            future = self._get_executor().submit(self.runner, item)
            self._pending.append(future)
        future.add_done_callback(self._on_done)
        return future

    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def drain(self, timeout: Optional[float] = None) -> None:
        """
        Block until the queue is empty, including links enqueued while waiting.

        Used by one-shot processes (scripts) that would otherwise exit mid-chain.
        Failed links do not raise here; `_on_done` has logged them.

        Args:
            timeout: Overall limit in seconds, None to wait indefinitely

        Raises:
            TimeoutError: If links are still running when `timeout` expires
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            with self._lock:
                self._pending = [f for f in self._pending if not f.done()]
                pending = list(self._pending)
            if not pending:
                return

            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            _, not_done = wait_for_futures(pending, timeout=remaining)
            if not_done and deadline is not None and time.monotonic() >= deadline:
                raise TimeoutError(f"{len(not_done)} chained batch(es) still running after {timeout}s")

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None
