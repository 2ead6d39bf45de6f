#!/usr/bin/env python3
"""
CLI script to run database deduplication.
This is a maintenance script that can be run periodically to clean up duplicate events.
"""

import logging
import sys
from pathlib import Path

# Add project root to Python path
sys.path.append(str(Path(__file__).parent.parent))

from timeline_sync.config.environment import IS_PRODUCTION_ENVIRONMENT  # noqa: F401
from timeline_sync.utils.deduplication import clean_duplicates
from timeline_sync.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def main():
    setup_logging()

    try:
        summary = clean_duplicates()
        logger.info(
            f"Removed {summary.events_removed} duplicate events and {summary.photos_removed} duplicate photos"
        )
        return 0
    except Exception as e:
        logger.error(f"Failed to deduplicate database: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
