"""
Storage logging listener — writes one log record per storage event.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from ..events import (
    OperationEvent,
    OperationFailedEvent,
    OperationSuccessEvent,
    StorageEvent,
    StorageEventEmitter,
)

_default_logger = logging.getLogger("stowage.events.log")


class StorageLoggingListener:
    """
    Subscribes to every ``StorageEvent`` and logs it.

    Failures are logged at WARNING regardless of ``level``.

    Usage:
        listener = StorageLoggingListener(adapter.event_emitter).attach()
        ...
        listener.detach()
    """

    def __init__(
        self,
        emitter: StorageEventEmitter,
        logger: Optional[logging.Logger] = None,
        level: int = logging.INFO,
    ):
        self.emitter = emitter
        self.logger = logger or _default_logger
        self.level = level
        self._unsubscribers: List[Callable[[], None]] = []

    @property
    def attached(self) -> bool:
        return bool(self._unsubscribers)

    def attach(self) -> "StorageLoggingListener":
        if not self._unsubscribers:
            self._unsubscribers = [self.emitter.subscribe(kind, self) for kind in StorageEvent]
        return self

    def detach(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def __call__(self, event: OperationEvent) -> None:
        target = f" key={event.key}" if event.key else ""
        prefix = f"[{event.correlation_id}] {event.adapter_name}.{event.operation.value}{target}"

        if isinstance(event, OperationFailedEvent):
            error = event.error
            self.logger.warning(
                f"{prefix} failed after {event.duration:.2f}ms: "
                f"{type(error).__name__}: {error}"
            )
        elif isinstance(event, OperationSuccessEvent):
            self.logger.log(self.level, f"{prefix} succeeded in {event.duration:.2f}ms")
        else:
            self.logger.log(self.level, f"{prefix} started")
