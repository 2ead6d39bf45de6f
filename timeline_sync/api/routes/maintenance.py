"""Maintenance routes."""

from fastapi import APIRouter, Depends

from ...utils.deduplication import DuplicateJanitor
from ..dependencies import get_janitor

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@router.post("/dedupe")
def dedupe(janitor: DuplicateJanitor = Depends(get_janitor)):
    """Collapse duplicate events and photos, keeping the oldest row."""
    return {"status": "ok", **janitor.dedupe().to_dict()}
