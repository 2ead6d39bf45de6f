"""Time-based trigger: dedupe, chained Facebook sync, Webflow push."""

import logging
from typing import Any, Dict

from .cms import push_pending_events
from .config.sync import SYNC_SETTINGS
from .sync_manager import FacebookSyncManager, SyncRequest, get_continuation_queue
from .utils.deduplication import clean_duplicates

logger = logging.getLogger(__name__)


def run_scheduled_sync(wait_for_chain: bool = True) -> Dict[str, Any]:
    """
    Run the periodic maintenance and sync cycle.

    Args:
        wait_for_chain: Block until chained batches have finished; one-shot
                        processes such as cron jobs must wait or the chain
                        dies with the process

    Returns:
        Dict with the summary of each step
    """
    results: Dict[str, Any] = {}

    results['dedupe'] = clean_duplicates().to_dict()

    summary = FacebookSyncManager().run_batch(SyncRequest(chain=True))
    results['facebook'] = summary.to_dict()

    if wait_for_chain:
        try:
            get_continuation_queue().drain(timeout=SYNC_SETTINGS.chain_drain_timeout)
        except TimeoutError as e:
            # Push what has been stored so far; the stuck link keeps running in the background
            logger.error(f"Gave up waiting for chained batches: {e}")

    results['webflow'] = push_pending_events()

    logger.info(f"Scheduled sync finished: {results}")
    return results
