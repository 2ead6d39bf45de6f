"""Routes for pulling the Facebook page feed into the store."""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse

from ...config.external_services import WebhookConfig, verify_webhook_token
from ...sync_manager import FacebookSyncManager, SyncRequest
from ..dependencies import get_sync_manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["facebook"])


def get_webhook_config() -> WebhookConfig:
    return WebhookConfig()


def run_sync_in_background(manager: FacebookSyncManager, request: SyncRequest) -> None:
    """Background task wrapper; the webhook caller has already been answered."""
    try:
        summary = manager.run_batch(request)
        logger.info(f"Webhook-triggered sync finished: {summary.to_dict()}")
    except Exception as e:
        logger.error(f"Webhook-triggered sync failed: {e}")


@router.post("/sync/facebook")
def trigger_facebook_sync(
    cursor: Optional[str] = Query(None),
    limit: Optional[int] = Query(None),
    max_total: Optional[int] = Query(None, alias="max"),
    chain: bool = Query(False),
    token: Optional[str] = Query(None),
    manager: FacebookSyncManager = Depends(get_sync_manager)
):
    """
    Run one sync batch and report what it did.

    With chain=true the remaining feed is worked off by follow-up batches
    after this response has been sent.
    """
    request = SyncRequest(
        cursor=cursor or None,
        target_count=max_total if max_total and max_total > 0 else manager.settings.default_target_count,
        limit=limit if limit and limit > 0 else manager.settings.default_limit,
        chain=chain,
        token=token,
    )
    summary = manager.run_batch(request)
    return {"status": "ok", **summary.to_dict()}


@router.get("/webhook/facebook")
def verify_facebook_webhook(
    mode: Optional[str] = Query(None, alias="hub.mode"),
    verify_token: Optional[str] = Query(None, alias="hub.verify_token"),
    challenge: Optional[str] = Query(None, alias="hub.challenge"),
    config: WebhookConfig = Depends(get_webhook_config)
):
    """Facebook subscription handshake: echo the challenge for the right token."""
    if mode == "subscribe" and challenge and verify_webhook_token(verify_token, config):
        return PlainTextResponse(challenge)
    raise HTTPException(status_code=401, detail="unauthorized")


@router.post("/webhook/facebook")
def receive_facebook_webhook(
    background_tasks: BackgroundTasks,
    token: Optional[str] = Query(None),
    verify_token: Optional[str] = Query(None),
    config: WebhookConfig = Depends(get_webhook_config),
    manager: FacebookSyncManager = Depends(get_sync_manager)
):
    """
    Feed change notification: start a chained sync and answer immediately.
    """
    supplied = token or verify_token
    if config.is_configured and not verify_webhook_token(supplied, config):
        raise HTTPException(status_code=401, detail="unauthorized")

    background_tasks.add_task(run_sync_in_background, manager, SyncRequest(chain=True, token=supplied))

    return {"status": "ok", "message": "sync triggered"}
