"""
Shared test fixtures and helpers for the Stowage test suite.
"""

from typing import Callable, List, Optional

import pytest

from stowage.adapter import BaseStorageAdapter
from stowage.adapters import LocalStorageAdapter, MemoryStorageAdapter
from stowage.events import StorageEventEmitter
from stowage.responses import (
    DeleteResponse,
    DownloadResponse,
    ExistsResponse,
    GetResponse,
    ListResponse,
    UploadResponse,
)
from stowage.types import ListResult, StorageFile, StorageObject


# ============================================================================
# Stub adapter
# ============================================================================


class StubAdapter(BaseStorageAdapter):
    """
    Minimal adapter with a switchable readiness flag.

    Every backend hook appends its operation name to ``calls``.
    """

    provider = "stub"

    def __init__(self, name: Optional[str] = None, *, ready: bool = True, event_emitter=None):
        self.ready = ready
        self.calls: List[str] = []
        self.shutdown_called = False
        super().__init__(name, event_emitter=event_emitter)

    def is_ready(self) -> bool:
        return self.ready

    async def shutdown(self) -> None:
        self.shutdown_called = True

    async def _perform_upload(self, file, options):
        self.calls.append("upload")
        key = options.key if options and options.key else file.filename
        return UploadResponse(success=True, key=key, url=f"stub://{key}", size=file.size)

    async def _perform_download(self, key, options):
        self.calls.append("download")
        return DownloadResponse(success=True, url=f"stub://{key}", content=b"")

    async def _perform_delete(self, key, options):
        self.calls.append("delete")
        return DeleteResponse(success=True, key=key)

    async def _perform_get(self, key):
        self.calls.append("get")
        return GetResponse(success=True, object=StorageObject(key=key))

    async def _perform_list(self, options):
        self.calls.append("list")
        return ListResponse(success=True, result=ListResult())

    async def _perform_exists(self, key):
        self.calls.append("exists")
        return ExistsResponse(success=True, exists=True)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def emitter():
    return StorageEventEmitter()


@pytest.fixture
def make_stub() -> Callable[..., StubAdapter]:
    """Factory for ``StubAdapter`` instances."""
    def _make(name: Optional[str] = None, ready: bool = True, event_emitter=None) -> StubAdapter:
        return StubAdapter(name, ready=ready, event_emitter=event_emitter)
    return _make


@pytest.fixture
def memory_adapter(emitter):
    """Fresh MemoryStorageAdapter bound to the shared ``emitter`` fixture."""
    return MemoryStorageAdapter(event_emitter=emitter)


@pytest.fixture
def local_adapter(tmp_path, emitter):
    return LocalStorageAdapter(
        root_path=tmp_path / "media",
        base_url="https://cdn.example.com/media",
        event_emitter=emitter,
    )


@pytest.fixture
def sample_file():
    return StorageFile(filename="report.txt", content=b"hello world", mime_type="text/plain")
