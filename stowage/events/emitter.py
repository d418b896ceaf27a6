"""
Stowage Event Emitter — in-process publish/subscribe keyed by event kind.

Decouples producers (the operation envelope) from consumers (loggers,
validators, metrics collectors).

Listeners can be sync or async callables taking one event record.
They are invoked on ``publish()``:

- The listener list is snapshotted under a lock before any listener
  runs, so a listener that unsubscribes itself (or others) mid-publish
  neither skips nor double-invokes anyone.
- Sync listeners run inline; coroutines returned by async listeners are
  gathered concurrently. One failing listener never prevents the others
  from running to completion.
- Once every listener has finished, the first error (in subscription
  order) is re-raised to the publisher. This is what lets a pre-operation
  listener veto the operation.

Usage:
    emitter = StorageEventEmitter()

    async def audit(event):
        print(event.adapter_name, event.key)

    unsubscribe = emitter.subscribe(StorageEvent.AFTER_UPLOAD_SUCCESS, audit)
    ...
    unsubscribe()

    # Temporary subscription
    with emitter.subscribed(StorageEvent.BEFORE_DELETE, guard):
        await adapter.delete("reports/q3.pdf")
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from .types import EventListener, StorageEvent

logger = logging.getLogger("stowage.events")


@dataclass(eq=False)
class ListenerRegistration:
    """One subscription: event kind, callback, and one-shot flag."""

    kind: StorageEvent
    callback: EventListener
    once: bool = False


def _listener_name(callback: Any) -> str:
    return getattr(callback, "__qualname__", None) or repr(callback)


class StorageEventEmitter:
    """
    Publish/subscribe bus for storage events.

    A single emitter may be shared by several adapters (for example to
    feed one audit log); sharing is always explicit, via the adapter
    constructor or ``set_event_emitter()``.
    """

    def __init__(self) -> None:
        self._listeners: Dict[StorageEvent, List[ListenerRegistration]] = {}
        self._lock = threading.Lock()

    # ── Subscription ────────────────────────────────────────────────

    def subscribe(self, kind: StorageEvent, callback: EventListener) -> Callable[[], None]:
        """
        Register ``callback`` for one event kind.

        Returns:
            A function that removes exactly this registration.
        """
        return self._add(StorageEvent(kind), callback, once=False)

    def subscribe_once(self, kind: StorageEvent, callback: EventListener) -> Callable[[], None]:
        """Register ``callback`` to fire on the next ``kind`` event only."""
        return self._add(StorageEvent(kind), callback, once=True)

    def _add(self, kind: StorageEvent, callback: EventListener, *, once: bool) -> Callable[[], None]:
        if not callable(callback):
            raise TypeError(f"Listener for '{kind.value}' must be callable, got {type(callback).__name__}")

        with self._lock:
            registrations = self._listeners.setdefault(kind, [])
            for existing in registrations:
                if existing.callback == callback:
                    registration = existing  # Already subscribed
                    break
            else:
                registration = ListenerRegistration(kind=kind, callback=callback, once=once)
                registrations.append(registration)

        def unsubscribe() -> None:
            with self._lock:
                self._discard(registration)

        return unsubscribe

    def _discard(self, registration: ListenerRegistration) -> bool:
        """Remove one registration. Caller holds the lock."""
        registrations = self._listeners.get(registration.kind)
        if not registrations:
            return False
        for i, existing in enumerate(registrations):
            if existing is registration:
                registrations.pop(i)
                if not registrations:
                    del self._listeners[registration.kind]
                return True
        return False

    def unsubscribe(self, kind: StorageEvent, callback: EventListener) -> bool:
        """
        Remove ``callback`` from ``kind``.

        Returns True if the callback was found and removed.
        """
        kind = StorageEvent(kind)
        with self._lock:
            for registration in list(self._listeners.get(kind, ())):
                if registration.callback == callback:
                    return self._discard(registration)
        return False

    def remove_all(self, kind: Optional[StorageEvent] = None) -> None:
        """Remove every listener of ``kind``, or every listener at all."""
        with self._lock:
            if kind is None:
                self._listeners.clear()
            else:
                self._listeners.pop(StorageEvent(kind), None)

    @contextlib.contextmanager
    def subscribed(self, kind: StorageEvent, callback: EventListener) -> Iterator[None]:
        """
        Context manager for a temporary subscription.

        Usage:
            with emitter.subscribed(StorageEvent.BEFORE_UPLOAD, validate):
                await adapter.upload(file)
            # validate is unsubscribed here
        """
        unsubscribe = self.subscribe(kind, callback)
        try:
            yield
        finally:
            unsubscribe()

    # ── Publication ─────────────────────────────────────────────────

    async def publish(self, kind: StorageEvent, event: Any) -> None:
        """
        Invoke every current listener of ``kind`` with ``event``.

        Waits for all listeners to finish. If any listener raised, the
        first error (in subscription order) is re-raised afterwards.
        """
        kind = StorageEvent(kind)
        with self._lock:
            snapshot = list(self._listeners.get(kind, ()))
            # One-shot listeners leave before running so concurrent
            # publishes cannot fire them twice.
            for registration in snapshot:
                if registration.once:
                    self._discard(registration)

        if not snapshot:
            return

        errors: List[Tuple[int, ListenerRegistration, BaseException]] = []
        pending: List[Tuple[int, ListenerRegistration, Any]] = []

        for index, registration in enumerate(snapshot):
            try:
                result = registration.callback(event)
            except Exception as exc:
                errors.append((index, registration, exc))
                continue
            if inspect.isawaitable(result):
                pending.append((index, registration, result))

        if pending:
            outcomes = await asyncio.gather(
                *(awaitable for _, _, awaitable in pending),
                return_exceptions=True,
            )
            for (index, registration, _), outcome in zip(pending, outcomes):
                if isinstance(outcome, BaseException):
                    errors.append((index, registration, outcome))

        if not errors:
            return

        errors.sort(key=lambda item: item[0])
        for _, registration, exc in errors[1:]:
            logger.error(
                f"Listener {_listener_name(registration.callback)} for '{kind.value}' "
                f"raised {exc.__class__.__name__}: {exc}"
            )
        raise errors[0][2]

    # ── Bookkeeping ─────────────────────────────────────────────────

    def listener_count(self, kind: StorageEvent) -> int:
        """Number of listeners currently subscribed to ``kind``."""
        with self._lock:
            return len(self._listeners.get(StorageEvent(kind), ()))

    def event_names(self) -> List[StorageEvent]:
        """Event kinds with at least one listener."""
        with self._lock:
            return [kind for kind, registrations in self._listeners.items() if registrations]

    def has_listeners(self, kind: StorageEvent) -> bool:
        return self.listener_count(kind) > 0

    def __repr__(self) -> str:
        with self._lock:
            total = sum(len(r) for r in self._listeners.values())
        return f"<StorageEventEmitter kinds={len(self._listeners)} listeners={total}>"
