"""
Stowage Events — event kinds and event records.

Every operation publishes three kinds of event: one before the backend is
called, one after it returns, and one after it raises. Records are plain
dataclasses created per invocation and discarded after publication.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, Union


class StorageOperation(str, Enum):
    """The six operations of the storage capability interface."""

    UPLOAD = "upload"
    DOWNLOAD = "download"
    DELETE = "delete"
    GET = "get"
    LIST = "list"
    EXISTS = "exists"


class StorageEvent(str, Enum):
    """All eighteen event kinds (before / success / failed per operation)."""

    # Upload events
    BEFORE_UPLOAD = "before_upload"
    AFTER_UPLOAD_SUCCESS = "after_upload_success"
    UPLOAD_FAILED = "upload_failed"

    # Download events
    BEFORE_DOWNLOAD = "before_download"
    AFTER_DOWNLOAD_SUCCESS = "after_download_success"
    DOWNLOAD_FAILED = "download_failed"

    # Delete events
    BEFORE_DELETE = "before_delete"
    AFTER_DELETE_SUCCESS = "after_delete_success"
    DELETE_FAILED = "delete_failed"

    # Get events
    BEFORE_GET = "before_get"
    AFTER_GET_SUCCESS = "after_get_success"
    GET_FAILED = "get_failed"

    # List events
    BEFORE_LIST = "before_list"
    AFTER_LIST_SUCCESS = "after_list_success"
    LIST_FAILED = "list_failed"

    # Exists events
    BEFORE_EXISTS = "before_exists"
    AFTER_EXISTS_SUCCESS = "after_exists_success"
    EXISTS_FAILED = "exists_failed"

    @classmethod
    def for_operation(cls, operation: StorageOperation) -> Tuple["StorageEvent", "StorageEvent", "StorageEvent"]:
        """Return the (before, success, failed) kinds of an operation."""
        return _OPERATION_EVENTS[StorageOperation(operation)]

    @property
    def operation(self) -> StorageOperation:
        """The operation this event kind belongs to."""
        return _EVENT_OPERATIONS[self]


_OPERATION_EVENTS: Dict[StorageOperation, Tuple[StorageEvent, StorageEvent, StorageEvent]] = {
    StorageOperation.UPLOAD: (
        StorageEvent.BEFORE_UPLOAD, StorageEvent.AFTER_UPLOAD_SUCCESS, StorageEvent.UPLOAD_FAILED,
    ),
    StorageOperation.DOWNLOAD: (
        StorageEvent.BEFORE_DOWNLOAD, StorageEvent.AFTER_DOWNLOAD_SUCCESS, StorageEvent.DOWNLOAD_FAILED,
    ),
    StorageOperation.DELETE: (
        StorageEvent.BEFORE_DELETE, StorageEvent.AFTER_DELETE_SUCCESS, StorageEvent.DELETE_FAILED,
    ),
    StorageOperation.GET: (
        StorageEvent.BEFORE_GET, StorageEvent.AFTER_GET_SUCCESS, StorageEvent.GET_FAILED,
    ),
    StorageOperation.LIST: (
        StorageEvent.BEFORE_LIST, StorageEvent.AFTER_LIST_SUCCESS, StorageEvent.LIST_FAILED,
    ),
    StorageOperation.EXISTS: (
        StorageEvent.BEFORE_EXISTS, StorageEvent.AFTER_EXISTS_SUCCESS, StorageEvent.EXISTS_FAILED,
    ),
}

_EVENT_OPERATIONS: Dict[StorageEvent, StorageOperation] = {
    kind: op for op, kinds in _OPERATION_EVENTS.items() for kind in kinds
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class OperationEvent:
    """
    Pre-operation event record.

    ``key`` is set for key-addressed operations, ``file`` for uploads, and
    ``options`` carries whatever options the caller passed.
    """

    adapter_name: str
    operation: StorageOperation
    correlation_id: str
    timestamp: datetime = field(default_factory=_utcnow)
    key: Optional[str] = None
    file: Any = None
    options: Any = None


@dataclass
class OperationSuccessEvent(OperationEvent):
    """Published after the backend returned; ``duration`` is in milliseconds."""

    response: Any = None
    duration: float = 0.0


@dataclass
class OperationFailedEvent(OperationEvent):
    """Published after the backend raised; ``duration`` is in milliseconds."""

    error: Optional[BaseException] = None
    duration: float = 0.0


EventListener = Callable[[OperationEvent], Union[None, Awaitable[None]]]
