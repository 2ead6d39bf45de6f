#!/usr/bin/env python3
"""Run a Facebook feed sync batch from the command line."""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to Python path
sys.path.append(str(Path(__file__).parent.parent))

from timeline_sync.config.environment import IS_PRODUCTION_ENVIRONMENT  # noqa: F401
from timeline_sync.config.sync import SYNC_SETTINGS
from timeline_sync.sync_manager import SyncRequest, get_continuation_queue, run_facebook_sync
from timeline_sync.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description='Sync the Facebook page feed into the event store')
    parser.add_argument('--cursor', help='Feed cursor to resume from', default=None)
    parser.add_argument('--limit', type=int, default=SYNC_SETTINGS.default_limit, help='Posts per page')
    parser.add_argument(
        '--target',
        type=int,
        default=SYNC_SETTINGS.default_target_count,
        help='Qualifying posts to process before the batch stops'
    )
    parser.add_argument('--chain', action='store_true', help='Keep going until the feed is exhausted')
    args = parser.parse_args()

    setup_logging()

    request = SyncRequest(cursor=args.cursor, target_count=args.target, limit=args.limit, chain=args.chain)
    try:
        summary = run_facebook_sync(request)
        logger.info(f"Batch finished: {summary.to_dict()}")
        if args.chain:
            get_continuation_queue().drain(timeout=SYNC_SETTINGS.chain_drain_timeout)
        return 0
    except Exception as e:
        logger.error(f"Facebook sync failed: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
