"""Blob storage for uploaded CV files.

Pipeline code talks to the small ``BlobStore`` protocol so it does not
depend on where the bytes live. ``LocalBlobStore`` keeps them in a
directory on disk; a cloud object store only has to provide the same
two coroutines.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class BlobStoreError(Exception):
    """Raised when a blob cannot be written or read."""
    pass


class BlobNotFoundError(BlobStoreError):
    """Raised when a reference does not resolve to a stored blob."""
    pass


class BlobStore(Protocol):
    """Minimal interface to store and fetch binary objects by name."""

    async def put(self, name: str, data: bytes, content_type: str | None = None) -> str: ...

    async def get(self, reference: str) -> bytes: ...


class LocalBlobStore:
    """Filesystem-backed blob store.

    The reference returned by ``put`` is the bare file name inside ``root``.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def _resolve(self, reference: str) -> Path:
        # References are plain names; anything that walks out of root is unknown
        if not reference or Path(reference).name != reference or reference in {".", ".."}:
            raise BlobNotFoundError(f"Invalid blob reference: {reference!r}")
        return self.root / reference

    def _write(self, path: Path, data: bytes) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        with open(path, "xb") as fh:
            fh.write(data)

    async def put(self, name: str, data: bytes, content_type: str | None = None) -> str:
        path = self._resolve(name)
        try:
            await asyncio.to_thread(self._write, path, data)
        except OSError as e:
            raise BlobStoreError(f"Failed to store blob {name}: {e}") from e

        logger.info(f"Stored blob {name} ({len(data)} bytes, {content_type or 'unknown type'})")
        return name

    async def get(self, reference: str) -> bytes:
        path = self._resolve(reference)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError as e:
            raise BlobNotFoundError(f"Blob not found: {reference}") from e
        except OSError as e:
            raise BlobStoreError(f"Failed to read blob {reference}: {e}") from e
