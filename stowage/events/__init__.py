"""
Stowage Events — lifecycle notifications for storage operations.
"""

from .types import (
    EventListener,
    OperationEvent,
    OperationFailedEvent,
    OperationSuccessEvent,
    StorageEvent,
    StorageOperation,
)
from .emitter import ListenerRegistration, StorageEventEmitter

__all__ = [
    "EventListener",
    "ListenerRegistration",
    "OperationEvent",
    "OperationFailedEvent",
    "OperationSuccessEvent",
    "StorageEvent",
    "StorageEventEmitter",
    "StorageOperation",
]
