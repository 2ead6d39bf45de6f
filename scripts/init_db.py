#!/usr/bin/env python3
"""Create the database schema (idempotent)."""

import logging
import sys
from pathlib import Path

# Add project root to Python path
sys.path.append(str(Path(__file__).parent.parent))

from timeline_sync.config.environment import IS_PRODUCTION_ENVIRONMENT  # noqa: F401
from timeline_sync.db import db
from timeline_sync.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def main():
    setup_logging()

    try:
        db.init_db()
        logger.info(f"Schema ready at {db.config.connection_url.split('@')[-1]}")
        return 0
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
