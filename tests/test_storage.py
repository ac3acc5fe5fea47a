"""Tests for the local blob store."""

import pytest

from awards.storage import BlobNotFoundError, BlobStoreError, LocalBlobStore


@pytest.mark.asyncio
async def test_put_then_get_returns_same_bytes(tmp_path):
    store = LocalBlobStore(tmp_path / "blobs")
    payload = bytes(range(256)) * 4

    reference = await store.put("cv-1-2.pdf", payload, "application/pdf")

    assert reference == "cv-1-2.pdf"
    assert await store.get(reference) == payload
    assert (tmp_path / "blobs" / "cv-1-2.pdf").exists()


@pytest.mark.asyncio
async def test_get_missing_blob_is_not_found(tmp_path):
    store = LocalBlobStore(tmp_path)
    with pytest.raises(BlobNotFoundError):
        await store.get("cv-missing.pdf")


@pytest.mark.asyncio
@pytest.mark.parametrize("reference", ["../secret.txt", "nested/cv.pdf", "", ".."])
async def test_references_cannot_escape_root(tmp_path, reference):
    store = LocalBlobStore(tmp_path / "blobs")
    with pytest.raises(BlobNotFoundError):
        await store.get(reference)


@pytest.mark.asyncio
async def test_put_never_overwrites(tmp_path):
    store = LocalBlobStore(tmp_path)
    await store.put("cv-1.pdf", b"first")

    with pytest.raises(BlobStoreError):
        await store.put("cv-1.pdf", b"second")
    assert await store.get("cv-1.pdf") == b"first"
