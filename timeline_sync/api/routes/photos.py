"""Serves stored event photos."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from ...storage import BlobStore, BlobStoreError
from ..dependencies import get_photo_store

router = APIRouter(tags=["photos"])


@router.get("/photos/{storage_key:path}")
def serve_photo(storage_key: str, blob_store: BlobStore = Depends(get_photo_store)):
    """Return photo bytes; keys never change, so responses are cached for good."""
    try:
        blob = blob_store.get(storage_key)
    except BlobStoreError:
        blob = None

    if blob is None:
        raise HTTPException(status_code=404, detail="Not found")

    return Response(
        content=blob.data,
        media_type=blob.content_type or "image/jpeg",
        headers={"Cache-Control": "public, max-age=31536000, immutable"},
    )
