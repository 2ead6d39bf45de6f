"""Main application entry point."""

import os

from timeline_sync.config.environment import IS_PRODUCTION_ENVIRONMENT
from timeline_sync.api.app import app

if __name__ == "__main__":
    port = int(os.environ.get('PORT', 8000))
    if not IS_PRODUCTION_ENVIRONMENT:
        # Development mode - string reference so reload can re-import the app
        import uvicorn
        uvicorn.run(
            "timeline_sync.api.app:app",
            host="0.0.0.0",
            port=port,
            reload=True,
            log_level="debug"
        )
    else:
        # Production mode - single worker: chained batches run on an in-process queue
        import uvicorn
        uvicorn.run(
            app,
            host="0.0.0.0",
            port=port,
            reload=False,
            log_level="info",
            proxy_headers=True,
            forwarded_allow_ips="*"
        )
