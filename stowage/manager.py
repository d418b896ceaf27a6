"""
Stowage Manager — adapter registry and fallback resolver.

StorageManager owns the named adapters of one application. It is built
explicitly from a ``StorageManagerConfig`` and handed to whoever needs
storage; there is no module-level singleton.

Adapters enter the registry two ways:

    manager = StorageManager(config)
    manager.register_factory("s3", lambda cfg: S3StorageAdapter(**cfg))
    manager.register_instance("memory", MemoryStorageAdapter())

A factory only runs when the configuration has an enabled record for its
name. The resolved instance is then picked by name, by default, or
through the fallback scan:

    adapter = manager.resolve_with_fallback(preferred="s3")
    if adapter is None:
        ...  # nothing available

Fallback order: preferred, then default, then every remaining enabled and
ready adapter by descending priority (ties in registration order).
"""

from __future__ import annotations

import inspect
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .adapter import StorageAdapterProtocol
from .config import AdapterConfig, StorageManagerConfig
from .faults import (
    AdapterDisabledFault,
    AdapterNotReadyFault,
    AdapterNotRegisteredFault,
    AdapterUnavailableFault,
    StorageConfigurationFault,
)

logger = logging.getLogger("stowage.manager")

AdapterFactory = Callable[[Dict[str, Any]], StorageAdapterProtocol]


@dataclass
class AdapterRegistration:
    """Registry entry for one adapter name."""

    name: str
    seq: int
    instance: Optional[StorageAdapterProtocol] = None
    factory: Optional[AdapterFactory] = None
    enabled: bool = True
    priority: int = 0
    config: Dict[str, Any] = field(default_factory=dict)


class StorageManager:
    """
    Named registry of storage adapters with default and fallback resolution.

    Names are case-insensitive. Registration order is the order of the
    ``register_*`` calls; re-registering a name keeps its original place.
    """

    def __init__(self, config: Optional[StorageManagerConfig] = None):
        self.config = config or StorageManagerConfig()
        self._registrations: Dict[str, AdapterRegistration] = {}
        self._seq = itertools.count()
        self._default: Optional[str] = self.config.default_adapter
        self._fallback_enabled = self.config.enable_fallback

    # ── Registration ────────────────────────────────────────────────

    def register_factory(self, name: str, factory: AdapterFactory) -> "StorageManager":
        """
        Register an adapter factory under ``name``.

        If the configuration holds an enabled record for ``name``, the
        factory is called with that record's ``config`` and the instance
        cached. A factory error is logged and leaves the name without an
        instance.
        """
        if not callable(factory):
            raise TypeError(f"Factory for adapter '{name}' must be callable")

        registration = self._registration_for(name)
        registration.factory = factory
        registration.instance = None

        record = self.config.get(registration.name)
        if record is None:
            logger.debug(f"Factory registered for '{registration.name}' (no configuration record)")
            return self

        self._apply_record(registration, record)
        if not record.enabled:
            logger.debug(f"Adapter '{registration.name}' is disabled by configuration")
            return self

        try:
            registration.instance = factory(dict(record.config))
        except Exception as exc:
            logger.error(f"Failed to create storage adapter '{registration.name}': {exc}")
        else:
            logger.debug(f"Adapter '{registration.name}' created (priority={registration.priority})")
        return self

    def register_instance(self, name: str, adapter: StorageAdapterProtocol) -> "StorageManager":
        """Register an already-built adapter under ``name``."""
        if not isinstance(adapter, StorageAdapterProtocol):
            raise TypeError(
                f"Adapter '{name}' does not implement StorageAdapterProtocol "
                f"(got {type(adapter).__name__})"
            )

        registration = self._registration_for(name)
        registration.instance = adapter
        record = self.config.get(registration.name)
        if record is not None:
            self._apply_record(registration, record)
        logger.debug(f"Adapter instance registered as '{registration.name}'")
        return self

    def _registration_for(self, name: str) -> AdapterRegistration:
        key = self._normalize(name)
        registration = self._registrations.get(key)
        if registration is None:
            registration = AdapterRegistration(name=key, seq=next(self._seq))
            self._registrations[key] = registration
        return registration

    @staticmethod
    def _apply_record(registration: AdapterRegistration, record: AdapterConfig) -> None:
        registration.enabled = record.enabled
        registration.priority = record.priority
        registration.config = dict(record.config)

    @staticmethod
    def _normalize(name: str) -> str:
        if not name or not str(name).strip():
            raise StorageConfigurationFault("Adapter name must be a non-empty string")
        return str(name).strip().lower()

    # ── Resolution ──────────────────────────────────────────────────

    def resolve(self, name: str) -> StorageAdapterProtocol:
        """
        Return the adapter registered as ``name``.

        Raises:
            AdapterDisabledFault: The configuration disables ``name``.
            AdapterNotRegisteredFault: No instance exists for ``name``.
            AdapterNotReadyFault: The instance reports ``is_ready() == False``.
        """
        key = self._normalize(name)
        registration = self._registrations.get(key)
        if registration is not None and not registration.enabled:
            raise AdapterDisabledFault(key, available=self.available_adapters())
        if registration is None or registration.instance is None:
            raise AdapterNotRegisteredFault(key, available=self.available_adapters())
        if not registration.instance.is_ready():
            raise AdapterNotReadyFault(key)
        return registration.instance

    def resolve_default(self) -> StorageAdapterProtocol:
        """
        Return the default adapter.

        Without a configured default, the first enabled instance in
        registration order is used.
        """
        if self._default:
            return self.resolve(self._default)
        for registration in self._ordered():
            if registration.enabled and registration.instance is not None:
                return self.resolve(registration.name)
        raise StorageConfigurationFault(
            "No storage adapters registered",
            details={"registered": list(self._registrations)},
        )

    def resolve_with_fallback(self, preferred: Optional[str] = None) -> Optional[StorageAdapterProtocol]:
        """
        Resolve ``preferred``, then the default, then (with fallback
        enabled) the highest-priority remaining ready adapter.

        With fallback disabled, an unavailable preferred/default adapter
        raises its ``AdapterUnavailableFault``. Returns ``None`` when no
        adapter could be resolved.
        """
        tried: List[str] = []
        candidates: List[str] = []
        if preferred:
            candidates.append(self._normalize(preferred))
        if self._default and self._default not in candidates:
            candidates.append(self._default)

        for name in candidates:
            tried.append(name)
            try:
                return self.resolve(name)
            except AdapterUnavailableFault as exc:
                if not self._fallback_enabled:
                    raise
                logger.warning(f"Storage adapter '{name}' unavailable, trying fallback: {exc.message}")

        if not self._fallback_enabled:
            return None

        for registration in self._by_priority():
            if registration.name in tried:
                continue
            if not registration.enabled or registration.instance is None:
                continue
            if registration.instance.is_ready():
                logger.warning(f"Using fallback storage adapter '{registration.name}'")
                return registration.instance

        logger.warning(f"No storage adapter available (tried: {', '.join(tried) or 'none'})")
        return None

    def _ordered(self) -> List[AdapterRegistration]:
        return sorted(self._registrations.values(), key=lambda r: r.seq)

    def _by_priority(self) -> List[AdapterRegistration]:
        return sorted(self._registrations.values(), key=lambda r: (-r.priority, r.seq))

    # ── Mutation ────────────────────────────────────────────────────

    def remove_adapter(self, name: str) -> bool:
        """Forget ``name``; clears the default if it pointed there."""
        key = self._normalize(name)
        removed = self._registrations.pop(key, None) is not None
        if self._default == key:
            self._default = None
        if removed:
            logger.debug(f"Adapter '{key}' removed")
        return removed

    def set_default(self, name: str) -> None:
        key = self._normalize(name)
        if key not in self._registrations:
            raise AdapterNotRegisteredFault(key, available=self.available_adapters())
        self._default = key

    def set_fallback_enabled(self, enabled: bool) -> None:
        self._fallback_enabled = bool(enabled)

    def clear(self) -> None:
        """Drop every registration and the default."""
        self._registrations.clear()
        self._default = None

    # ── Lifecycle ───────────────────────────────────────────────────

    async def initialize(self) -> None:
        """Await ``initialize()`` on every instance that defines it."""
        for registration in self._ordered():
            await self._call_hook(registration, "initialize")

    async def shutdown(self) -> None:
        """Await ``shutdown()`` on every instance, then ``clear()``."""
        for registration in self._ordered():
            await self._call_hook(registration, "shutdown")
        self.clear()

    async def _call_hook(self, registration: AdapterRegistration, hook: str) -> None:
        method = getattr(registration.instance, hook, None)
        if method is None or not callable(method):
            return
        try:
            result = method()
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            logger.error(f"Adapter '{registration.name}' {hook} error: {exc}")

    # ── Introspection ───────────────────────────────────────────────

    @property
    def default_adapter(self) -> Optional[str]:
        return self._default

    @property
    def fallback_enabled(self) -> bool:
        return self._fallback_enabled

    def available_adapters(self) -> List[str]:
        """Names with an enabled instance, in registration order."""
        return [r.name for r in self._ordered() if r.enabled and r.instance is not None]

    def ready_adapters(self) -> List[str]:
        """Names whose instance is enabled and ready, in registration order."""
        return [
            r.name for r in self._ordered()
            if r.enabled and r.instance is not None and r.instance.is_ready()
        ]

    def has_adapter(self, name: str) -> bool:
        registration = self._registrations.get(self._normalize(name))
        return registration is not None and registration.instance is not None

    def is_adapter_ready(self, name: str) -> bool:
        try:
            self.resolve(name)
        except AdapterUnavailableFault:
            return False
        return True

    def get_registration(self, name: str) -> Optional[AdapterRegistration]:
        return self._registrations.get(self._normalize(name))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has_adapter(name)

    def __len__(self) -> int:
        return len(self._registrations)

    def __repr__(self) -> str:
        return (
            f"<StorageManager adapters={self.available_adapters()} "
            f"default={self._default!r} fallback={self._fallback_enabled}>"
        )
