"""Route for pushing pending events to Webflow."""

from fastapi import APIRouter, Depends

from ...cms import WebflowPusher
from ..dependencies import get_webflow_pusher

router = APIRouter(tags=["webflow"])


@router.post("/sync/webflow")
def trigger_webflow_sync(pusher: WebflowPusher = Depends(get_webflow_pusher)):
    """Push every event flagged for sync."""
    return {"status": "ok", **pusher.push_pending()}
