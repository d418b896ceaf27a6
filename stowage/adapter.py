"""
Stowage Adapter — capability interface and the instrumented operation envelope.

``StorageAdapterProtocol`` is the contract the registry resolves against:
six async operations plus ``name`` and ``is_ready()``.

``BaseStorageAdapter`` implements the public operations once for every
backend. Each call:

1. Reuses the caller's correlation id (``options.metadata["correlation_id"]``)
   or mints a new one.
2. Publishes the ``BEFORE_*`` event and waits for every listener. A
   listener that raises vetoes the call: the error propagates and the
   backend is never invoked.
3. Times the backend hook (``_perform_*``).
4. On return, publishes ``AFTER_*_SUCCESS`` and hands back the response
   untouched apart from its correlation id.
5. On raise, publishes ``*_FAILED`` and re-raises the original exception.

Listener errors on the success/failed events are logged and never replace
what the caller observes.

Concrete backends subclass ``BaseStorageAdapter`` and implement the six
``_perform_*`` hooks.
"""

from __future__ import annotations

import logging
import time
import uuid
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, Protocol, TypeVar, runtime_checkable

from .events import (
    OperationEvent,
    OperationFailedEvent,
    OperationSuccessEvent,
    StorageEvent,
    StorageEventEmitter,
    StorageOperation,
)
from .faults import StorageFault
from .responses import (
    DeleteResponse,
    DownloadResponse,
    ExistsResponse,
    GetResponse,
    ListResponse,
    StorageResponse,
    UploadResponse,
)
from .types import (
    CORRELATION_ID_KEY,
    DeleteOptions,
    DownloadOptions,
    ListOptions,
    OperationOptions,
    StorageFile,
    UploadOptions,
)

logger = logging.getLogger("stowage.adapter")

R = TypeVar("R")


@runtime_checkable
class StorageAdapterProtocol(Protocol):
    """
    Interface that every storage backend must implement.

    Backends are registered with a ``StorageManager`` and resolved by name,
    by default, or through the fallback scan.
    """

    @property
    def name(self) -> str:
        ...

    def is_ready(self) -> bool:
        """Synchronous, I/O-free check that configuration is complete."""
        ...

    async def upload(self, file: StorageFile, options: Optional[UploadOptions] = None) -> UploadResponse:
        ...

    async def download(self, key: str, options: Optional[DownloadOptions] = None) -> DownloadResponse:
        ...

    async def delete(self, key: str, options: Optional[DeleteOptions] = None) -> DeleteResponse:
        ...

    async def get(self, key: str, options: Optional[OperationOptions] = None) -> GetResponse:
        ...

    async def list(self, options: Optional[ListOptions] = None) -> ListResponse:
        ...

    async def exists(self, key: str, options: Optional[OperationOptions] = None) -> ExistsResponse:
        ...


class BaseStorageAdapter(ABC):
    """
    Abstract base for storage backends — wraps every operation in the
    instrumented envelope.

    Args:
        name: Adapter name reported in events and logs.
        event_emitter: Bus to publish on. Pass the same emitter to several
            adapters to observe them through one set of listeners.
    """

    provider: str = "base"

    def __init__(self, name: Optional[str] = None, *, event_emitter: Optional[StorageEventEmitter] = None):
        self._name = name or self.provider
        self._event_emitter = event_emitter or StorageEventEmitter()
        self.validate_config()

    # ── Identity & readiness ────────────────────────────────────────

    @property
    def name(self) -> str:
        return self._name

    def validate_config(self) -> None:
        """
        Check configuration at construction time.

        Raises:
            StorageConfigurationFault: If required settings are missing.
        """

    def is_ready(self) -> bool:
        """Whether configuration is complete enough to attempt operations."""
        return True

    # ── Event bus ───────────────────────────────────────────────────

    @property
    def event_emitter(self) -> StorageEventEmitter:
        return self._event_emitter

    def get_event_emitter(self) -> StorageEventEmitter:
        return self._event_emitter

    def set_event_emitter(self, emitter: StorageEventEmitter) -> None:
        """Swap in a (possibly shared) event emitter."""
        self._event_emitter = emitter

    # ── Lifecycle ───────────────────────────────────────────────────

    async def initialize(self) -> None:
        """Open connections / sessions. No-op by default."""

    async def shutdown(self) -> None:
        """Close connections / sessions. No-op by default."""

    # ── Public operations ───────────────────────────────────────────

    async def upload(self, file: StorageFile, options: Optional[UploadOptions] = None) -> UploadResponse:
        return await self._instrument(
            StorageOperation.UPLOAD,
            lambda: self._perform_upload(file, options),
            key=options.key if options else None,
            file=file,
            options=options,
        )

    async def download(self, key: str, options: Optional[DownloadOptions] = None) -> DownloadResponse:
        return await self._instrument(
            StorageOperation.DOWNLOAD,
            lambda: self._perform_download(key, options),
            key=key,
            options=options,
        )

    async def delete(self, key: str, options: Optional[DeleteOptions] = None) -> DeleteResponse:
        return await self._instrument(
            StorageOperation.DELETE,
            lambda: self._perform_delete(key, options),
            key=key,
            options=options,
        )

    async def get(self, key: str, options: Optional[OperationOptions] = None) -> GetResponse:
        return await self._instrument(
            StorageOperation.GET,
            lambda: self._perform_get(key),
            key=key,
            options=options,
        )

    async def list(self, options: Optional[ListOptions] = None) -> ListResponse:
        return await self._instrument(
            StorageOperation.LIST,
            lambda: self._perform_list(options),
            options=options,
        )

    async def exists(self, key: str, options: Optional[OperationOptions] = None) -> ExistsResponse:
        return await self._instrument(
            StorageOperation.EXISTS,
            lambda: self._perform_exists(key),
            key=key,
            options=options,
        )

    # ── Envelope ────────────────────────────────────────────────────

    async def _instrument(
        self,
        operation: StorageOperation,
        perform: Callable[[], Awaitable[R]],
        *,
        key: Optional[str] = None,
        file: Optional[StorageFile] = None,
        options: Optional[OperationOptions] = None,
    ) -> R:
        before, succeeded, failed = StorageEvent.for_operation(operation)
        correlation_id = (options.correlation_id if options is not None else None) or str(uuid.uuid4())
        common = {
            "adapter_name": self.name,
            "operation": operation,
            "correlation_id": correlation_id,
            "key": key,
            "file": file,
            "options": options,
        }

        # Listener errors here propagate: the backend is never called.
        await self._event_emitter.publish(before, OperationEvent(**common))

        start = time.perf_counter()
        try:
            response = await perform()
        except Exception as exc:
            duration = (time.perf_counter() - start) * 1000.0
            if isinstance(exc, StorageFault):
                exc.metadata.setdefault(CORRELATION_ID_KEY, correlation_id)
            logger.debug(
                f"{self.name}.{operation.value} failed after {duration:.2f}ms "
                f"[{correlation_id}]: {exc.__class__.__name__}: {exc}"
            )
            await self._notify(failed, OperationFailedEvent(**common, error=exc, duration=duration))
            raise

        duration = (time.perf_counter() - start) * 1000.0
        if isinstance(response, StorageResponse) and response.correlation_id is None:
            response.correlation_id = correlation_id
        logger.debug(f"{self.name}.{operation.value} completed in {duration:.2f}ms [{correlation_id}]")
        await self._notify(succeeded, OperationSuccessEvent(**common, response=response, duration=duration))
        return response

    async def _notify(self, kind: StorageEvent, event: OperationEvent) -> None:
        """Publish a post-operation event; listener errors are logged only."""
        try:
            await self._event_emitter.publish(kind, event)
        except Exception as exc:
            logger.error(
                f"Listener for '{kind.value}' on adapter '{self.name}' raised "
                f"{exc.__class__.__name__}: {exc} [{event.correlation_id}]"
            )

    # ── Backend hooks ───────────────────────────────────────────────

    @abstractmethod
    async def _perform_upload(self, file: StorageFile, options: Optional[UploadOptions]) -> UploadResponse:
        ...

    @abstractmethod
    async def _perform_download(self, key: str, options: Optional[DownloadOptions]) -> DownloadResponse:
        ...

    @abstractmethod
    async def _perform_delete(self, key: str, options: Optional[DeleteOptions]) -> DeleteResponse:
        ...

    @abstractmethod
    async def _perform_get(self, key: str) -> GetResponse:
        ...

    @abstractmethod
    async def _perform_list(self, options: Optional[ListOptions]) -> ListResponse:
        ...

    @abstractmethod
    async def _perform_exists(self, key: str) -> ExistsResponse:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, ready={self.is_ready()})"
