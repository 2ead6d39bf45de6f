from __future__ import annotations

import pytest

from timeline_sync.storage import BlobStoreError


def test_put_get_delete(blob_store) -> None:
    blob_store.put("events/1/photo.png", b"png-bytes", "image/png")

    blob = blob_store.get("events/1/photo.png")
    assert blob.data == b"png-bytes"
    assert blob.content_type == "image/png"

    blob_store.delete("events/1/photo.png")
    assert blob_store.get("events/1/photo.png") is None


def test_missing_key_and_repeated_delete(blob_store) -> None:
    assert blob_store.get("events/9/none.jpg") is None
    blob_store.delete("events/9/none.jpg")


@pytest.mark.parametrize("key", ["", "../outside.jpg", "/etc/passwd", "events/../../x"])
def test_rejects_keys_outside_base_dir(blob_store, key) -> None:
    with pytest.raises(BlobStoreError):
        blob_store.put(key, b"x", "image/jpeg")


def test_content_type_sidecar_is_not_addressable(blob_store) -> None:
    blob_store.put("events/1/photo.png", b"png-bytes", "image/png")

    with pytest.raises(BlobStoreError):
        blob_store.get("events/1/photo.png.meta")
    with pytest.raises(BlobStoreError):
        blob_store.put("events/1/other.meta", b"x", "image/jpeg")
