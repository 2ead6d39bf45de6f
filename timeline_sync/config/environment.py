"""Environment configuration module.

Import this before any module that reads environment variables: it loads
`.env` (python-dotenv) so scripts, the API and tests all see the same
settings. On the hosting platform the variables are set directly and
`.env` is absent.

Usage:
    from timeline_sync.config.environment import IS_PRODUCTION_ENVIRONMENT
"""

import os
import logging
from dotenv import load_dotenv

load_dotenv()

ENVIRONMENT = os.environ.get('ENVIRONMENT', '').lower()
IS_PRODUCTION_ENVIRONMENT = ENVIRONMENT == 'production'

if ENVIRONMENT not in ('development', 'production'):
    logging.getLogger(__name__).warning(
        f"ENVIRONMENT={ENVIRONMENT!r} is not 'development' or 'production'; "
        "running with development settings (SQLite, open CORS, API docs enabled)."
    )

__all__ = ['ENVIRONMENT', 'IS_PRODUCTION_ENVIRONMENT']
