"""
Local filesystem storage adapter.

Stores each object as a file under ``root_path``; the key is the path
relative to the root. Useful for development and single-host deployments.

Usage::

    adapter = LocalStorageAdapter(
        root_path="/var/lib/app/media",
        base_url="https://cdn.example.com/media",
    )
    response = await adapter.upload(StorageFile("cv.pdf", data, "application/pdf"))

    # File is at:
    #   /var/lib/app/media/<key>

Blocking file I/O runs in the default executor. Missing keys raise
``FileNotFoundFault``; other OS errors come back as failed responses.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, List, Optional, TypeVar, Union

from ..adapter import BaseStorageAdapter
from ..events import StorageEventEmitter
from ..faults import FileNotFoundFault, InvalidKeyFault, StorageConfigurationFault
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
from ..utils import (
    generate_key,
    get_file_extension,
    get_mime_type,
    normalize_path,
    paginate,
    sanitize_filename,
    upload_metadata,
)

logger = logging.getLogger("stowage.adapters.local")

T = TypeVar("T")


class LocalStorageAdapter(BaseStorageAdapter):
    """
    Adapter that writes objects to a directory tree.

    Args:
        root_path: Directory holding all objects.
        base_url: URL prefix for reported object URLs. Without one,
            ``file://`` URLs are reported.
        create_directory: Create ``root_path`` if it does not exist.
        file_permissions: Optional ``chmod`` mode applied after writes.
    """

    provider = "local"

    def __init__(
        self,
        root_path: Union[str, Path, None] = None,
        base_url: Optional[str] = None,
        *,
        create_directory: bool = True,
        file_permissions: Optional[int] = None,
        name: Optional[str] = None,
        event_emitter: Optional[StorageEventEmitter] = None,
    ):
        self._raw_root = root_path
        self.root_path = Path(root_path).resolve() if root_path else None
        self.base_url = base_url.rstrip("/") if base_url else None
        self.create_directory = create_directory
        self.file_permissions = file_permissions
        super().__init__(name, event_emitter=event_emitter)

        if self.create_directory:
            try:
                self.root_path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.error(f"Cannot create storage root {self.root_path}: {e}")

    def validate_config(self) -> None:
        if not self._raw_root:
            raise StorageConfigurationFault(
                "Root path is required for local storage",
                details={"provider": self.provider},
            )

    def is_ready(self) -> bool:
        return self.root_path is not None

    # ── Paths ───────────────────────────────────────────────────────

    def _path_for(self, key: str) -> Path:
        """Map ``key`` to a path under the root, rejecting escapes."""
        normalized = normalize_path(key).lstrip("/")
        if not normalized:
            raise InvalidKeyFault(key, "empty key")
        path = (self.root_path / normalized).resolve()
        if path != self.root_path and self.root_path not in path.parents:
            raise InvalidKeyFault(key, "resolves outside the storage root")
        return path

    def _url(self, key: str) -> str:
        if self.base_url:
            return f"{self.base_url}/{key}"
        return self._path_for(key).as_uri()

    @staticmethod
    async def _run(func: Callable[[], T]) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func)

    def _generate_key(self, filename: str) -> str:
        extension = get_file_extension(sanitize_filename(filename))
        return generate_key(extension=extension or None)

    # ── Operations ──────────────────────────────────────────────────

    async def _perform_upload(self, file: StorageFile, options: Optional[UploadOptions]) -> UploadResponse:
        key = normalize_path(options.key) if options and options.key else self._generate_key(file.filename)
        path = self._path_for(key)

        def write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(file.content)
            if self.file_permissions is not None:
                path.chmod(self.file_permissions)

        try:
            await self._run(write)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            return UploadResponse.failure_from_exception(e, "Failed to upload file")

        url = self._url(key)
        logger.debug(f"Wrote {file.size} bytes to {path}")
        return UploadResponse(
            success=True,
            key=key,
            url=url,
            public_url=url if options and options.public else None,
            size=file.size,
            metadata=upload_metadata(file, options),
        )

    async def _perform_download(self, key: str, options: Optional[DownloadOptions]) -> DownloadResponse:
        path = self._path_for(key)
        try:
            content = await self._run(path.read_bytes)
        except (FileNotFoundError, IsADirectoryError):
            raise FileNotFoundFault(key) from None
        except OSError as e:
            return DownloadResponse.failure_from_exception(e, "Failed to download file")

        return DownloadResponse(success=True, url=self._url(key), content=content)

    async def _perform_delete(self, key: str, options: Optional[DeleteOptions]) -> DeleteResponse:
        path = self._path_for(key)
        try:
            await self._run(path.unlink)
        except (FileNotFoundError, IsADirectoryError):
            raise FileNotFoundFault(key) from None
        except OSError as e:
            return DeleteResponse.failure_from_exception(e, "Failed to delete file")
        return DeleteResponse(success=True, key=key)

    async def _perform_get(self, key: str) -> GetResponse:
        path = self._path_for(key)
        try:
            stats = await self._run(path.stat)
        except FileNotFoundError:
            raise FileNotFoundFault(key) from None
        except OSError as e:
            return GetResponse.failure_from_exception(e, "Failed to get file metadata")
        if not path.is_file():
            raise FileNotFoundFault(key)
        return GetResponse(success=True, object=self._describe(key, path, stats))

    async def _perform_list(self, options: Optional[ListOptions]) -> ListResponse:
        options = options or ListOptions()
        prefix = normalize_path(options.prefix).lstrip("/")

        def scan() -> List[Any]:
            if not self.root_path.is_dir():
                return []
            found = []
            for path in self.root_path.rglob("*"):
                if not path.is_file():
                    continue
                key = path.relative_to(self.root_path).as_posix()
                if key.startswith(prefix):
                    found.append((key, path, path.stat()))
            found.sort(key=lambda item: item[0])
            return found

        try:
            entries = await self._run(scan)
        except OSError as e:
            return ListResponse.failure_from_exception(e, "Failed to list files")

        page, next_token = paginate(entries, options.max_keys, options.continuation_token)
        return ListResponse(
            success=True,
            result=ListResult(
                objects=[self._describe(key, path, stats) for key, path, stats in page],
                has_more=next_token is not None,
                next_continuation_token=next_token,
            ),
        )

    async def _perform_exists(self, key: str) -> ExistsResponse:
        path = self._path_for(key)
        try:
            found = await self._run(path.is_file)
        except OSError as e:
            return ExistsResponse.failure_from_exception(e, "Failed to check file existence")
        return ExistsResponse(success=True, exists=found)

    def _describe(self, key: str, path: Path, stats: Any) -> StorageObject:
        return StorageObject(
            key=key,
            url=self._url(key),
            size=stats.st_size,
            content_type=get_mime_type(path.name),
            last_modified=datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc),
        )

    def __repr__(self) -> str:
        return f"LocalStorageAdapter(name={self.name!r}, root={str(self.root_path)!r})"
