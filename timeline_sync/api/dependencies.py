"""FastAPI dependency providers.

Routes receive their collaborators through these functions so tests can
swap them with `app.dependency_overrides`.
"""

from fastapi import Depends

from ..cms import WebflowPusher
from ..db import Database, db
from ..post_handler import PostReconciler
from ..storage import BlobStore, get_blob_store
from ..sync_manager import FacebookSyncManager
from ..utils.deduplication import DuplicateJanitor


def get_database() -> Database:
    return db


def get_photo_store() -> BlobStore:
    return get_blob_store()


def get_reconciler(
    database: Database = Depends(get_database),
    blob_store: BlobStore = Depends(get_photo_store)
) -> PostReconciler:
    return PostReconciler(database=database, blob_store=blob_store)


def get_sync_manager(reconciler: PostReconciler = Depends(get_reconciler)) -> FacebookSyncManager:
    return FacebookSyncManager(reconciler=reconciler)


def get_janitor(
    database: Database = Depends(get_database),
    blob_store: BlobStore = Depends(get_photo_store)
) -> DuplicateJanitor:
    return DuplicateJanitor(database=database, blob_store=blob_store)


def get_webflow_pusher(database: Database = Depends(get_database)) -> WebflowPusher:
    return WebflowPusher(database=database)
