#!/usr/bin/env python3
"""
Scheduled sync: dedupe, pull the Facebook feed (chained), push to Webflow.

Meant to be run periodically (cron or a platform scheduler).
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to Python path
sys.path.append(str(Path(__file__).parent.parent))

from timeline_sync.config.environment import IS_PRODUCTION_ENVIRONMENT  # noqa: F401
from timeline_sync.scheduled import run_scheduled_sync
from timeline_sync.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description='Run the scheduled Facebook/Webflow sync once')
    parser.add_argument(
        '--no-wait',
        action='store_true',
        help='Do not wait for chained batches before pushing to Webflow'
    )
    args = parser.parse_args()

    setup_logging()

    try:
        results = run_scheduled_sync(wait_for_chain=not args.no_wait)
        logger.info(f"Scheduled sync finished: {results}")
        return 0
    except Exception as e:
        logger.error(f"Scheduled sync failed: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
