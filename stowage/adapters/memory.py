"""
In-memory storage adapter.

Keeps objects in a dict guarded by an ``asyncio.Lock``. Intended for
tests and development; contents vanish with the process.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..adapter import BaseStorageAdapter
from ..events import StorageEventEmitter
from ..faults import FileNotFoundFault, InvalidKeyFault
from ..responses import (
    DeleteResponse,
    DownloadResponse,
    ExistsResponse,
    GetResponse,
    ListResponse,
    UploadResponse,
)
from ..types import (
    DeleteOptions,
    DownloadOptions,
    ListOptions,
    ListResult,
    StorageFile,
    StorageObject,
    UploadOptions,
)
from ..utils import generate_key, get_file_extension, is_valid_key, paginate, upload_metadata

logger = logging.getLogger("stowage.adapters.memory")


@dataclass
class _StoredObject:
    content: bytes
    content_type: str
    metadata: Dict[str, Any]
    last_modified: datetime
    etag: str


class MemoryStorageAdapter(BaseStorageAdapter):
    """
    Dict-backed adapter.

    Args:
        name: Adapter name (default ``"memory"``).
        base_url: Prefix for the ``url`` reported on upload/download.
        event_emitter: Shared event bus, if any.
    """

    provider = "memory"

    def __init__(
        self,
        name: Optional[str] = None,
        *,
        base_url: str = "memory://",
        event_emitter: Optional[StorageEventEmitter] = None,
    ):
        self.base_url = base_url
        self._objects: Dict[str, _StoredObject] = {}
        self._lock = asyncio.Lock()
        super().__init__(name, event_emitter=event_emitter)

    def _url(self, key: str) -> str:
        return f"{self.base_url}{key}"

    def __len__(self) -> int:
        return len(self._objects)

    async def _perform_upload(self, file: StorageFile, options: Optional[UploadOptions]) -> UploadResponse:
        if options and options.key:
            key = options.key
        else:
            key = generate_key(extension=get_file_extension(file.filename) or None)
        if not is_valid_key(key):
            raise InvalidKeyFault(key, "keys must be non-empty and may not start or end with '/'")

        metadata = upload_metadata(file, options)
        content_type = (options.content_type if options else None) or file.mime_type
        async with self._lock:
            self._objects[key] = _StoredObject(
                content=bytes(file.content),
                content_type=content_type,
                metadata=metadata,
                last_modified=datetime.now(timezone.utc),
                etag=hashlib.md5(file.content).hexdigest(),
            )
        logger.debug(f"Stored {key} ({file.size} bytes)")

        url = self._url(key)
        return UploadResponse(
            success=True,
            key=key,
            url=url,
            public_url=url if options and options.public else None,
            size=file.size,
            metadata=metadata,
        )

    async def _perform_download(self, key: str, options: Optional[DownloadOptions]) -> DownloadResponse:
        async with self._lock:
            stored = self._objects.get(key)
        if stored is None:
            raise FileNotFoundFault(key)

        url = self._url(key)
        signed_url = f"{url}?expires_in={options.expires_in}" if options and options.expires_in else None
        return DownloadResponse(
            success=True,
            url=url,
            signed_url=signed_url,
            content=stored.content,
            metadata=dict(stored.metadata),
        )

    async def _perform_delete(self, key: str, options: Optional[DeleteOptions]) -> DeleteResponse:
        async with self._lock:
            if self._objects.pop(key, None) is None:
                raise FileNotFoundFault(key)
        return DeleteResponse(success=True, key=key)

    async def _perform_get(self, key: str) -> GetResponse:
        async with self._lock:
            stored = self._objects.get(key)
        if stored is None:
            raise FileNotFoundFault(key)
        return GetResponse(success=True, object=self._describe(key, stored))

    async def _perform_list(self, options: Optional[ListOptions]) -> ListResponse:
        options = options or ListOptions()
        async with self._lock:
            snapshot = dict(self._objects)

        keys = sorted(k for k in snapshot if k.startswith(options.prefix))
        page, next_token = paginate(keys, options.max_keys, options.continuation_token)

        return ListResponse(
            success=True,
            result=ListResult(
                objects=[self._describe(k, snapshot[k]) for k in page],
                has_more=next_token is not None,
                next_continuation_token=next_token,
            ),
        )

    async def _perform_exists(self, key: str) -> ExistsResponse:
        async with self._lock:
            found = key in self._objects
        return ExistsResponse(success=True, exists=found)

    def _describe(self, key: str, stored: _StoredObject) -> StorageObject:
        return StorageObject(
            key=key,
            url=self._url(key),
            size=len(stored.content),
            content_type=stored.content_type,
            last_modified=stored.last_modified,
            etag=stored.etag,
            metadata=dict(stored.metadata),
        )
