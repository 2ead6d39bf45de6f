"""One-way push of feed events to a Webflow CMS collection.

Events flagged sync=1 are created as collection items, or updated when
they already carry a Webflow item id, and flagged sync=0 afterwards.
Pushing the same event twice updates the same item.
"""

import logging
import re
from typing import Any, Dict, List, Optional

import requests

from ..config.external_services import WebflowConfig, get_webflow_config
from ..db import Database, db, with_retry
from ..models import Event, EventPhoto, ORIGIN_FACEBOOK, EXTERNAL_SOURCE_FACEBOOK_POST, SYNC_CLEAN, SYNC_PENDING
from ..utils.timezone import isoformat_utc, now_utc

logger = logging.getLogger(__name__)

SLUG_MAX_LENGTH = 80


class CMSPushFailed(Exception):
    """Raised when one event cannot be pushed to Webflow."""
    pass


def slugify(value: str) -> str:
    """Lowercase, dash-separated, at most 80 characters; 'memory' when nothing is left."""
    slug = re.sub(r'[^a-z0-9]+', '-', (value or '').lower()).strip('-')
    return slug[:SLUG_MAX_LENGTH] or 'memory'


def map_event_to_fields(event: Event, photos: List[EventPhoto], is_update: bool) -> Dict[str, Any]:
    """
    Build Webflow fieldData for an event.

    Keys are the collection's field slugs. `active` and `approved` are only
    set when the item is created so edits made in Webflow are not reverted.
    """
    first_photo = photos[0] if len(photos) > 0 else None
    second_photo = photos[1] if len(photos) > 1 else None
    created_at = isoformat_utc(event.created_at)

    fields: Dict[str, Any] = {
        'name': event.event_name_line_1 or 'Memory',
        'slug': slugify(event.event_name_line_1 or f"memory-{event.id}"),
        'date-added': event.event_date or created_at,
        'event-type': event.event_type or 'memory',
        'event-name-main': event.event_name_line_1 or None,
        'event-name': event.event_name_line_2 or None,
        'description': event.event_description or None,
        'posted-by-user-name': event.posted_by_name or None,
        'posted-by-user-image': event.posted_by_photo or None,
        'permalink': event.external_id if event.external_source == EXTERNAL_SOURCE_FACEBOOK_POST else None,
        'photo-1': first_photo.public_url if first_photo else None,
        'photo-2': second_photo.public_url if second_photo else None,
        'date': created_at,
        'origin': event.origin,
        'event-number': event.id,
        'even-number': event.id % 2 == 0,
    }

    if not is_update:
        fields['active'] = True
        fields['approved'] = True

    return fields


class WebflowPusher:
    """
    Pushes pending feed events to the configured Webflow collection.

    Configuration is loaded from timeline_sync.config.external_services.webflow
    unless passed in explicitly.
    """

    def __init__(
        self,
        database: Optional[Database] = None,
        config: Optional[WebflowConfig] = None,
        session: Optional[requests.Session] = None
    ):
        self.database = database or db
        self.config = config or get_webflow_config()
        self.session = session or requests.Session()
        self.headers = {
            "Authorization": f"Bearer {self.config.api_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    @with_retry()
    def _pending_events(self) -> List[Event]:
        with self.database.session() as session:
            return (
                session.query(Event)
                .filter(Event.origin == ORIGIN_FACEBOOK, Event.sync == SYNC_PENDING)
                .order_by(Event.id)
                .all()
            )

    @with_retry()
    def _photos_for(self, event_id: int) -> List[EventPhoto]:
        with self.database.session() as session:
            return (
                session.query(EventPhoto)
                .filter(EventPhoto.event_id == event_id)
                .order_by(EventPhoto.position, EventPhoto.id)
                .all()
            )

    @with_retry()
    def _mark_synced(self, event_id: int, item_id: Optional[str]) -> None:
        with self.database.session() as session:
            event = session.get(Event, event_id)
            if event is None:
                return
            if item_id:
                event.cms_item_id = item_id
            event.sync = SYNC_CLEAN
            event.updated_at = now_utc()

    def upsert_item(self, event: Event, photos: List[EventPhoto]) -> Optional[str]:
        """
        Create or update the Webflow item for an event.

        Returns:
            Optional[str]: The Webflow item id

        Raises:
            CMSPushFailed: If the field data is incomplete or Webflow rejects the call
        """
        is_update = bool(event.cms_item_id)
        field_data = map_event_to_fields(event, photos, is_update)

        if not field_data.get('name') or not field_data.get('slug'):
            raise CMSPushFailed("Webflow fieldData missing required name/slug")

        item = {'fieldData': field_data, 'isArchived': False, 'isDraft': False}
        collection_url = f"{self.config.base_url}/collections/{self.config.collection_id}/items"

        try:
            if is_update:
                response = self.session.patch(
                    f"{collection_url}/{event.cms_item_id}",
                    headers=self.headers,
                    json=item,
                    timeout=self.config.timeout
                )
            else:
                response = self.session.post(
                    collection_url,
                    headers=self.headers,
                    json={'items': [item]},
                    timeout=self.config.timeout
                )
        except requests.exceptions.RequestException as e:
            raise CMSPushFailed(f"Webflow request failed: {e}") from e

        if not response.ok:
            raise CMSPushFailed(f"Webflow API {response.status_code}: {response.text}")

        payload = response.json() or {}
        if payload.get('id'):
            return payload['id']
        items = payload.get('items') or []
        if items and items[0].get('id'):
            return items[0]['id']
        return event.cms_item_id

    def push_pending(self) -> Dict[str, int]:
        """
        Push every feed event flagged for sync.

        Failures are per event: the event keeps sync=1 and is retried on the
        next push.

        Returns:
            Dict with the number of events pushed
        """
        events = self._pending_events()
        if not events:
            logger.info("No events waiting for Webflow sync")
            return {'events_synced': 0}

        synced = 0
        for event in events:
            try:
                item_id = self.upsert_item(event, self._photos_for(event.id))
                self._mark_synced(event.id, item_id)
                synced += 1
            except Exception as e:
                logger.error(f"Webflow sync failed for event {event.id}: {e}")

        logger.info(f"Pushed {synced}/{len(events)} events to Webflow")
        return {'events_synced': synced}


def push_pending_events() -> Dict[str, int]:
    """Push with the global database and configuration."""
    return WebflowPusher().push_pending()
