"""
Batch controller for the Facebook → store sync.

One batch pulls feed pages until enough qualifying posts have been
reconciled, the feed runs out, or the page ceiling is hit. A single batch
is deliberately small: every post can mean several photo downloads and
store writes, and one invocation must stay within its time and outbound
call budget. When the target was reached and the feed has more pages, a
chained batch can pick up from the saved cursor.
"""

import logging
from dataclasses import asdict, dataclass, replace
from typing import Any, Callable, Dict, Optional

from .clients import FacebookFeedClient, FeedUnavailable
from .config.sync import SyncSettings, SYNC_SETTINGS
from .models import AuthorProfile
from .post_handler import PostReconciler
from .processors import is_life_event_post
from .sync_queue import ContinuationQueue

logger = logging.getLogger(__name__)


@dataclass
class SyncRequest:
    """
    Resumable state of a sync chain.

    Fields:
        cursor: Feed cursor to start from, None for the newest posts
        target_count: Qualifying posts to reconcile before stopping
        limit: Posts requested per page
        chain: Whether to continue with another batch when more posts remain
        token: Authorization token of the trigger, carried along the chain
    """
    cursor: Optional[str] = None
    target_count: int = SYNC_SETTINGS.default_target_count
    limit: int = SYNC_SETTINGS.default_limit
    chain: bool = False
    token: Optional[str] = None

    def __repr__(self) -> str:
        cursor = f"{self.cursor[:30]}..." if self.cursor else None
        return (
            f"SyncRequest(cursor={cursor}, target_count={self.target_count}, "
            f"limit={self.limit}, chain={self.chain}, token={'***' if self.token else None})"
        )


@dataclass
class SyncSummary:
    processed: int = 0
    inserted: int = 0
    updated: int = 0
    next_cursor: Optional[str] = None
    has_more: bool = False
    pages: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


Scheduler = Callable[[SyncRequest], Any]


class FacebookSyncManager:
    """
    Drives feed pages through the reconciler.

    Args:
        feed_client: Graph API client (built from configuration when omitted)
        reconciler: Post reconciler (global database and blob store when omitted)
        scheduler: Receives the continuation request of a chained batch;
                   defaults to the process-wide continuation queue
        settings: Work limits
    """

    def __init__(
        self,
        feed_client: Optional[FacebookFeedClient] = None,
        reconciler: Optional[PostReconciler] = None,
        scheduler: Optional[Scheduler] = None,
        settings: SyncSettings = SYNC_SETTINGS
    ):
        self.feed_client = feed_client or FacebookFeedClient(settings=settings)
        self.reconciler = reconciler or PostReconciler()
        self.scheduler = scheduler
        self.settings = settings

    def _fetch_author_profile(self) -> Optional[AuthorProfile]:
        try:
            return self.feed_client.fetch_author_profile()
        except FeedUnavailable as e:
            logger.error(f"Failed to fetch author profile: {e}")
            return None

    def _schedule(self, request: SyncRequest) -> None:
        scheduler = self.scheduler or get_continuation_queue().enqueue
        try:
            scheduler(request)
        except Exception as e:
            logger.error(f"Failed to schedule chained batch {request!r}: {e}")

    def run_batch(self, request: Optional[SyncRequest] = None) -> SyncSummary:
        """
        Run one bounded batch.

        A fetched page is always reconciled in full; the target is checked
        between pages. Stopping halfway through a page would leave the rest
        of it behind the saved cursor, out of reach of the chain.

        Args:
            request: Where to start and how much to do

        Returns:
            SyncSummary: Counts, the cursor after the last fetched page, and
                         has_more (target reached and the feed continues)

        Raises:
            FeedUnavailable: If a feed page cannot be fetched
        """
        request = request or SyncRequest()
        target_count = request.target_count if request.target_count and request.target_count > 0 else self.settings.default_target_count

        logger.info(
            f"[Facebook Sync] Starting batch. Chain={request.chain}, Target={target_count}, "
            f"{'Cursor: ' + request.cursor[:30] + '...' if request.cursor else 'No cursor (first batch)'}"
        )

        author_profile = self._fetch_author_profile()
        summary = SyncSummary()
        cursor = request.cursor

        while summary.processed < target_count and summary.pages < self.settings.max_pages_per_batch:
            page = self.feed_client.fetch_page(cursor=cursor, limit=request.limit)
            summary.pages += 1
            summary.next_cursor = page.next_cursor

            if not page.posts:
                break

            for post in page.posts:
                # Only actual posts; the feed also carries likes, comments etc.
                if not post.is_qualifying:
                    continue

                try:
                    result = self.reconciler.reconcile(post, author_profile, is_life_event_post(post))
                except Exception as e:
                    logger.error(f"Failed to process post {post.id}: {e}")
                    continue

                if result.processed:
                    summary.processed += 1
                    if result.inserted:
                        summary.inserted += 1
                    if result.updated:
                        summary.updated += 1

            if not page.next_cursor:
                break
            cursor = page.next_cursor

        summary.has_more = summary.processed >= target_count and bool(summary.next_cursor)

        logger.info(
            f"[Facebook Sync] Batch results: Processed={summary.processed}/{target_count}, "
            f"Inserted={summary.inserted}, Updated={summary.updated}, Pages={summary.pages}, HasMore={summary.has_more}"
        )

        if request.chain and summary.has_more:
            next_request = replace(request, cursor=summary.next_cursor, target_count=target_count)
            logger.info(f"Chaining to next batch: {next_request!r}")
            self._schedule(next_request)
        else:
            logger.info(
                f"Sync complete. No chaining: hasMore={summary.has_more}, "
                f"chain={request.chain}, hasCursor={bool(summary.next_cursor)}"
            )

        return summary


def _run_continuation(request: SyncRequest) -> Dict[str, Any]:
    return FacebookSyncManager().run_batch(request).to_dict()


_continuation_queue: Optional[ContinuationQueue] = None


def get_continuation_queue() -> ContinuationQueue:
    """Process-wide queue that runs chained batches."""
    global _continuation_queue

    if _continuation_queue is None:
        _continuation_queue = ContinuationQueue(_run_continuation)

    return _continuation_queue


def run_facebook_sync(request: Optional[SyncRequest] = None) -> SyncSummary:
    """Run one batch with default collaborators."""
    return FacebookSyncManager().run_batch(request)
