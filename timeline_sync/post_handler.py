"""Handler that writes upstream posts into the event store.

Reconciling a post is idempotent: the event row is looked up by its
natural key (origin, external_id) and overwritten, and the photo set is
diffed against the post's current attachments by normalized source URL.
Running it twice with the same post leaves the store unchanged.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from sqlalchemy.exc import SQLAlchemyError

from .db import Database, DatabaseError, StoreWriteFailed, db, with_retry
from .models import (
    Event,
    EventPhoto,
    AuthorProfile,
    FeedPost,
    ORIGIN_FACEBOOK,
    EXTERNAL_SOURCE_FACEBOOK_POST,
    SYNC_PENDING,
)
from .processors import EventDraft, FacebookPostProcessor, PostProcessor, normalize_source_url
from .storage import BlobStore, get_blob_store
from .utils.media import MediaDownloader, PhotoFetchFailed, StoredPhoto
from .utils.timezone import now_utc

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    processed: bool = False
    inserted: bool = False
    updated: bool = False


@dataclass
class PhotoSyncResult:
    kept: int = 0
    added: int = 0
    removed: int = 0
    failed: int = 0


def delete_blob_quietly(blob_store: BlobStore, storage_key: Optional[str]) -> None:
    """Best-effort blob removal; the photo row is the source of truth."""
    if not storage_key:
        return
    try:
        blob_store.delete(storage_key)
    except Exception as e:
        logger.warning(f"Failed to delete blob {storage_key}: {e}")


class PostReconciler:
    """
    Upserts one post into one event row plus its ordered photo set.

    Collaborators default to the global database, the configured blob store
    and a downloader writing into it; tests pass their own.
    """

    def __init__(
        self,
        database: Optional[Database] = None,
        blob_store: Optional[BlobStore] = None,
        downloader: Optional[MediaDownloader] = None,
        processor: Optional[PostProcessor] = None
    ):
        self.database = database or db
        self.blob_store = blob_store or get_blob_store()
        self.downloader = downloader or MediaDownloader(self.blob_store)
        self.processor = processor or FacebookPostProcessor()

    def reconcile(
        self,
        post: FeedPost,
        author_profile: Optional[AuthorProfile] = None,
        is_life_event: bool = False
    ) -> ReconcileResult:
        """
        Write one post to the store.

        Args:
            post: The upstream post
            author_profile: Fallback attribution
            is_life_event: Whether the post is a milestone

        Returns:
            ReconcileResult: processed=False (and nothing written) if the post has no id

        Raises:
            StoreWriteFailed: If the event or one of its photo rows cannot be written
        """
        draft = self.processor.process_post(post, author_profile, is_life_event)
        if draft is None:
            logger.warning("Skipping post without an id")
            return ReconcileResult()

        try:
            event_id, inserted = self._upsert_event(draft)
        except (DatabaseError, SQLAlchemyError) as e:
            raise StoreWriteFailed(f"Failed to upsert event for post {draft.external_id}: {e}") from e

        photos = self.sync_photos(event_id, draft.photo_urls)

        logger.info(
            f"{'Inserted' if inserted else 'Updated'} event {event_id} for post {draft.external_id} "
            f"(photos: {photos.added} added, {photos.kept} kept, {photos.removed} removed, {photos.failed} failed)"
        )
        return ReconcileResult(processed=True, inserted=inserted, updated=not inserted)

    @with_retry()
    def _upsert_event(self, draft: EventDraft) -> Tuple[int, bool]:
        with self.database.session() as session:
            existing = (
                session.query(Event)
                .filter(Event.external_id == draft.external_id, Event.origin == ORIGIN_FACEBOOK)
                .order_by(Event.id)
                .first()
            )

            if existing:
                existing.event_date = draft.event_date
                existing.event_type = draft.event_type
                existing.event_name_line_1 = draft.line_1
                existing.event_name_line_2 = draft.line_2
                existing.event_description = draft.description
                existing.posted_by_name = draft.posted_by_name
                existing.posted_by_photo = draft.posted_by_photo
                existing.sync = SYNC_PENDING
                existing.updated_at = now_utc()
                return existing.id, False

            event = Event(
                external_id=draft.external_id,
                external_source=EXTERNAL_SOURCE_FACEBOOK_POST,
                event_date=draft.event_date,
                event_type=draft.event_type,
                event_name_line_1=draft.line_1,
                event_name_line_2=draft.line_2,
                event_description=draft.description,
                posted_by_name=draft.posted_by_name,
                posted_by_photo=draft.posted_by_photo,
                origin=ORIGIN_FACEBOOK,
                sync=SYNC_PENDING,
                active=1,
                approved=0,
            )
            session.add(event)
            session.flush()
            return event.id, True

    @with_retry()
    def _load_photos(self, event_id: int) -> List[EventPhoto]:
        with self.database.session() as session:
            return (
                session.query(EventPhoto)
                .filter(EventPhoto.event_id == event_id)
                .order_by(EventPhoto.id)
                .all()
            )

    @with_retry()
    def _set_position(self, photo_id: int, position: int) -> None:
        with self.database.session() as session:
            photo = session.get(EventPhoto, photo_id)
            if photo:
                photo.position = position
                photo.updated_at = now_utc()

    @with_retry()
    def _insert_photo(self, event_id: int, source_url: str, stored: StoredPhoto, position: int) -> None:
        with self.database.session() as session:
            session.add(EventPhoto(
                event_id=event_id,
                storage_key=stored.storage_key,
                public_url=stored.public_url,
                original_source_url=source_url,
                position=position,
            ))

    @with_retry()
    def _delete_photo_row(self, photo_id: int) -> None:
        with self.database.session() as session:
            session.query(EventPhoto).filter(EventPhoto.id == photo_id).delete(synchronize_session=False)

    def sync_photos(self, event_id: int, photo_urls: List[str]) -> PhotoSyncResult:
        """
        Make the event's photo rows match `photo_urls`.

        Known URLs keep their blob and get their position updated, new URLs are
        downloaded and inserted, and rows whose URL is gone are removed together
        with their blobs. Repeated URLs count once, at their first position.
        A photo that cannot be downloaded is skipped and retried on the next sync.

        Raises:
            StoreWriteFailed: If a photo row cannot be read or written
        """
        result = PhotoSyncResult()

        try:
            existing_photos = self._load_photos(event_id)
            existing_by_source: Dict[str, EventPhoto] = {}
            for photo in existing_photos:
                if photo.original_source_url:
                    existing_by_source.setdefault(normalize_source_url(photo.original_source_url), photo)

            position = 0
            seen: Set[str] = set()

            for url in photo_urls:
                if not url:
                    continue
                normalized = normalize_source_url(url)
                if normalized in seen:
                    continue
                seen.add(normalized)

                existing = existing_by_source.get(normalized)
                if existing:
                    if existing.position != position:
                        self._set_position(existing.id, position)
                    position += 1
                    result.kept += 1
                    continue

                try:
                    stored = self.downloader.persist_photo(event_id, url)
                except PhotoFetchFailed as e:
                    logger.error(f"Failed to persist photo for event {event_id}: {e}")
                    result.failed += 1
                    continue

                try:
                    self._insert_photo(event_id, url, stored, position)
                except Exception:
                    delete_blob_quietly(self.blob_store, stored.storage_key)
                    raise
                position += 1
                result.added += 1

            for photo in existing_photos:
                if not photo.original_source_url:
                    continue
                if normalize_source_url(photo.original_source_url) in seen:
                    continue
                delete_blob_quietly(self.blob_store, photo.storage_key)
                self._delete_photo_row(photo.id)
                result.removed += 1

        except (DatabaseError, SQLAlchemyError) as e:
            raise StoreWriteFailed(f"Failed to sync photos for event {event_id}: {e}") from e

        return result
