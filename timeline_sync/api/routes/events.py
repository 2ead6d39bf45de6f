"""Events router module."""

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ...db import Database, StoreWriteFailed
from ...models import Event, EventPhoto, ORIGIN_FACEBOOK, ORIGIN_WEBFLOW, DEFAULT_EVENT_TYPE, SYNC_PENDING
from ...post_handler import PostReconciler
from ...processors.facebook_post import HEADLINE_MAX_LENGTH, SUBHEADLINE_MAX_LENGTH, truncate
from ...utils.timezone import now_utc
from ..dependencies import get_database, get_reconciler

logger = logging.getLogger(__name__)

router = APIRouter(tags=["events"])


class EventCreate(BaseModel):
    """Body of POST /events. Only event_name_line_1 is required."""
    external_id: Optional[str] = None
    external_source: Optional[str] = None
    event_date: Optional[str] = None
    event_type: Optional[str] = None
    event_name_line_1: Optional[str] = None
    event_name_line_2: Optional[str] = None
    event_description: Optional[str] = None
    posted_by_name: Optional[str] = None
    posted_by_photo: Optional[str] = None
    active: Optional[int] = None
    approved: Optional[int] = None
    origin: Optional[str] = None
    sync: Optional[int] = None
    photos: List[str] = Field(default_factory=list)


@router.get("/events", response_model=List[Dict])
def get_events(database: Database = Depends(get_database)):
    """Get all events, newest first, each with its ordered photos."""
    with database.session() as session:
        events = session.query(Event).order_by(Event.event_date.desc(), Event.id.desc()).all()
        if not events:
            return []

        photos = (
            session.query(EventPhoto)
            .filter(EventPhoto.event_id.in_([event.id for event in events]))
            .order_by(EventPhoto.position, EventPhoto.id)
            .all()
        )
        photo_map: Dict[int, List[Dict]] = {}
        for photo in photos:
            photo_map.setdefault(photo.event_id, []).append(photo.to_dict())

        return [{**event.to_dict(), 'photos': photo_map.get(event.id, [])} for event in events]


@router.post("/events")
def create_event(
    body: Optional[EventCreate] = None,
    database: Database = Depends(get_database),
    reconciler: PostReconciler = Depends(get_reconciler)
):
    """
    Create an event by hand (or from the CMS side).

    Photos given as URLs are downloaded and stored like feed photos; a photo
    that cannot be fetched is skipped.
    """
    body = body or EventCreate()
    if not body.event_name_line_1:
        raise HTTPException(status_code=400, detail="event_name_line_1 is required")

    now = now_utc()
    with database.session() as session:
        event = Event(
            external_id=body.external_id,
            external_source=body.external_source,
            event_date=body.event_date or now.isoformat(),
            event_type=body.event_type or DEFAULT_EVENT_TYPE,
            event_name_line_1=truncate(body.event_name_line_1, HEADLINE_MAX_LENGTH),
            event_name_line_2=truncate(body.event_name_line_2, SUBHEADLINE_MAX_LENGTH) if body.event_name_line_2 else None,
            event_description=body.event_description,
            posted_by_name=body.posted_by_name,
            posted_by_photo=body.posted_by_photo,
            active=body.active if body.active is not None else 1,
            approved=body.approved if body.approved is not None else 0,
            origin=ORIGIN_FACEBOOK if body.origin == ORIGIN_FACEBOOK else ORIGIN_WEBFLOW,
            sync=body.sync if body.sync is not None else SYNC_PENDING,
            date_added=now,
            created_at=now,
            updated_at=now,
        )
        session.add(event)
        session.flush()
        event_id = event.id

    if body.photos:
        try:
            result = reconciler.sync_photos(event_id, body.photos)
            logger.info(f"Stored {result.added} photos for new event {event_id} ({result.failed} failed)")
        except StoreWriteFailed as e:
            logger.error(f"Failed to store photos for event {event_id}: {e}")

    return {"id": event_id}
