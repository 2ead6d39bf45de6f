"""Duplicate janitor for the event store.

Reconciliation is idempotent but not locked: overlapping sync runs, retries
and older data can leave several rows for one natural key. This sweep
collapses them, always keeping the row with the lowest id.

Passes:
    1. events sharing (external_source, external_id)
    2. feed events sharing external_id (the key reconciliation looks up by)
    3. photos of one event sharing a normalized original_source_url
"""

import logging
from collections import defaultdict
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..db import Database, DatabaseError, db, with_retry
from ..models import Event, EventPhoto, ORIGIN_FACEBOOK
from ..processors import normalize_source_url
from ..storage import BlobStore, get_blob_store
from ..post_handler import delete_blob_quietly

logger = logging.getLogger(__name__)


@dataclass
class DedupeSummary:
    events_removed: int = 0
    photos_removed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _duplicate_ids(session: Session, partition_by: List[Any], filters: List[Any]) -> List[int]:
    """Ids of every row after the first (by id) in each partition."""
    ranked = (
        session.query(
            Event.id.label('id'),
            func.row_number().over(partition_by=partition_by, order_by=Event.id).label('rn'),
        )
        .filter(*filters)
        .subquery()
    )
    return [row.id for row in session.query(ranked.c.id).filter(ranked.c.rn > 1).order_by(ranked.c.id)]


def find_duplicate_photos(photos: List[Tuple[int, int, Optional[str], Optional[str]]]) -> List[Tuple[int, Optional[str]]]:
    """
    Pick redundant photos out of (id, event_id, storage_key, original_source_url) rows.

    Returns:
        (id, storage_key) of every photo but the lowest-id one per event and normalized URL
    """
    grouped: Dict[Tuple[int, str], List[Tuple[int, Optional[str]]]] = defaultdict(list)
    for photo_id, event_id, storage_key, source_url in photos:
        if source_url:
            grouped[(event_id, normalize_source_url(source_url))].append((photo_id, storage_key))

    duplicates = []
    for rows in grouped.values():
        if len(rows) > 1:
            rows.sort(key=lambda row: row[0])
            duplicates.extend(rows[1:])
    return sorted(duplicates)


class DuplicateJanitor:
    """Removes events and photos that break the identity invariants."""

    def __init__(self, database: Optional[Database] = None, blob_store: Optional[BlobStore] = None):
        self.database = database or db
        self.blob_store = blob_store or get_blob_store()

    def dedupe(self) -> DedupeSummary:
        """
        Run all passes.

        Returns:
            DedupeSummary: Removed events (passes 1 and 2) and photos (pass 3)

        Raises:
            DatabaseError: If the store cannot be read or written
        """
        summary = DedupeSummary()

        summary.events_removed += self._remove_events(
            "external_source/external_id",
            partition_by=[Event.external_source, Event.external_id],
            filters=[Event.external_source.isnot(None), Event.external_id.isnot(None)],
        )
        summary.events_removed += self._remove_events(
            "origin/external_id",
            partition_by=[Event.origin, Event.external_id],
            filters=[Event.external_id.isnot(None), Event.origin == ORIGIN_FACEBOOK],
        )
        summary.photos_removed += self._remove_photos()

        if summary.events_removed or summary.photos_removed:
            logger.info(
                f"Removed {summary.events_removed} duplicate events and "
                f"{summary.photos_removed} duplicate photos"
            )
        else:
            logger.info("No duplicates found")
        return summary

    @with_retry()
    def _remove_events(self, key_name: str, partition_by: List[Any], filters: List[Any]) -> int:
        try:
            with self.database.session() as session:
                ids = _duplicate_ids(session, partition_by, filters)
                if not ids:
                    return 0

                storage_keys = [
                    key for (key,) in session.query(EventPhoto.storage_key).filter(EventPhoto.event_id.in_(ids))
                ]
                for key in storage_keys:
                    delete_blob_quietly(self.blob_store, key)

                session.query(EventPhoto).filter(EventPhoto.event_id.in_(ids)).delete(synchronize_session=False)
                session.query(Event).filter(Event.id.in_(ids)).delete(synchronize_session=False)

                logger.info(f"Removed {len(ids)} duplicate events by {key_name}: {ids}")
                return len(ids)
        except DatabaseError:
            logger.error(f"Failed to remove duplicate events by {key_name}")
            raise

    @with_retry()
    def _remove_photos(self) -> int:
        with self.database.session() as session:
            rows = session.query(
                EventPhoto.id,
                EventPhoto.event_id,
                EventPhoto.storage_key,
                EventPhoto.original_source_url,
            ).all()

            duplicates = find_duplicate_photos([tuple(row) for row in rows])
            if not duplicates:
                return 0

            for _, storage_key in duplicates:
                delete_blob_quietly(self.blob_store, storage_key)

            ids = [photo_id for photo_id, _ in duplicates]
            session.query(EventPhoto).filter(EventPhoto.id.in_(ids)).delete(synchronize_session=False)

            logger.info(f"Removed {len(ids)} duplicate photos")
            return len(ids)


def clean_duplicates() -> DedupeSummary:
    """Run the janitor against the global database and blob store."""
    return DuplicateJanitor().dedupe()
