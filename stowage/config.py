"""
Stowage Configuration — adapter and manager settings.

Configuration is supplied once, when the ``StorageManager`` is built:

    config = StorageManagerConfig(
        adapters=[
            AdapterConfig(name="s3", config={"bucket": "media", "region": "eu-west-1"}, priority=10),
            AdapterConfig(name="local", config={"root_path": "/var/media"}, priority=1),
        ],
        default_adapter="s3",
        enable_fallback=True,
    )

Or from a plain mapping (``from_dict``) or the environment (``from_env``).
Environment keys use a prefix and double underscores for nesting::

    STOWAGE_DEFAULT_ADAPTER=s3
    STOWAGE_ENABLE_FALLBACK=true
    STOWAGE_ADAPTERS__S3__PRIORITY=10
    STOWAGE_ADAPTERS__S3__CONFIG__BUCKET=media
    STOWAGE_ADAPTERS__LOCAL__ENABLED=false

Backend-specific ``config`` blobs are opaque here and are passed verbatim
to adapter factories.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from dotenv import dotenv_values

from .faults import StorageConfigurationFault

DEFAULT_ENV_PREFIX = "STOWAGE_"

_TRUE = ("true", "yes", "on")
_FALSE = ("false", "no", "off")


def _to_bool(value: Any, *, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE or lowered == "1":
            return True
        if lowered in _FALSE or lowered == "0":
            return False
    raise StorageConfigurationFault(
        f"Configuration key '{key}' must be a boolean, got {value!r}",
        details={"key": key, "value": value},
    )


def _to_int(value: Any, *, key: str) -> int:
    if isinstance(value, bool):
        raise StorageConfigurationFault(
            f"Configuration key '{key}' must be an integer, got {value!r}",
            details={"key": key, "value": value},
        )
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise StorageConfigurationFault(
            f"Configuration key '{key}' must be an integer, got {value!r}",
            details={"key": key, "value": value},
        ) from exc


@dataclass
class AdapterConfig:
    """
    Configuration record for one named adapter.

    ``priority`` orders the fallback scan (higher first, default 0).
    ``config`` is handed unchanged to the adapter's factory.
    """

    name: str
    config: Dict[str, Any] = field(default_factory=dict)
    enabled: bool = True
    priority: int = 0

    def __post_init__(self) -> None:
        if not self.name or not str(self.name).strip():
            raise StorageConfigurationFault(
                "Adapter configuration is missing required field 'name'",
                details={"key": "adapters[].name"},
            )
        self.name = str(self.name).strip().lower()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AdapterConfig":
        if "name" not in data:
            raise StorageConfigurationFault(
                "Adapter configuration is missing required field 'name'",
                details={"key": "adapters[].name"},
            )
        name = str(data["name"])
        return cls(
            name=name,
            config=dict(data.get("config") or {}),
            enabled=_to_bool(data.get("enabled", True), key=f"adapters.{name}.enabled"),
            priority=_to_int(data.get("priority", 0), key=f"adapters.{name}.priority"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "config": self.config,
            "enabled": self.enabled,
            "priority": self.priority,
        }


@dataclass
class StorageManagerConfig:
    """Configuration for ``StorageManager``."""

    adapters: List[AdapterConfig] = field(default_factory=list)
    default_adapter: Optional[str] = None
    enable_fallback: bool = False

    def __post_init__(self) -> None:
        seen = set()
        for adapter in self.adapters:
            if adapter.name in seen:
                raise StorageConfigurationFault(
                    f"Adapter '{adapter.name}' is configured more than once",
                    details={"adapter_name": adapter.name},
                )
            seen.add(adapter.name)
        if self.default_adapter:
            self.default_adapter = self.default_adapter.strip().lower()

    def get(self, name: str) -> Optional[AdapterConfig]:
        """Return the config record for ``name`` (case-insensitive), if any."""
        key = name.lower()
        for adapter in self.adapters:
            if adapter.name == key:
                return adapter
        return None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StorageManagerConfig":
        adapters = data.get("adapters") or []
        if isinstance(adapters, Mapping):
            adapters = [{"name": name, **(entry or {})} for name, entry in adapters.items()]
        return cls(
            adapters=[a if isinstance(a, AdapterConfig) else AdapterConfig.from_dict(a) for a in adapters],
            default_adapter=data.get("default_adapter") or None,
            enable_fallback=_to_bool(data.get("enable_fallback", False), key="enable_fallback"),
        )

    @classmethod
    def from_env(
        cls,
        prefix: str = DEFAULT_ENV_PREFIX,
        env_file: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "StorageManagerConfig":
        """
        Build configuration from environment variables.

        Merge order (later overrides earlier):
        1. ``env_file`` (parsed with python-dotenv, not exported to os.environ)
        2. ``environ`` (defaults to ``os.environ``)
        """
        values: Dict[str, str] = {}
        if env_file:
            values.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
        values.update(os.environ if environ is None else environ)

        data: Dict[str, Any] = {}
        for key, raw in values.items():
            if key.startswith(prefix):
                _set_nested(data, key[len(prefix):], raw)

        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "adapters": [a.to_dict() for a in self.adapters],
            "default_adapter": self.default_adapter,
            "enable_fallback": self.enable_fallback,
        }


def _set_nested(target: Dict[str, Any], key: str, value: str) -> None:
    """Convert ``ADAPTERS__S3__CONFIG__BUCKET`` into nested dicts."""
    parts = key.lower().split("__")
    current = target
    for part in parts[:-1]:
        current = current.setdefault(part, {})
        if not isinstance(current, dict):
            raise StorageConfigurationFault(
                f"Environment key '{key}' conflicts with a scalar value",
                details={"key": key},
            )
    current[parts[-1]] = _parse_value(value)


def _parse_value(value: str) -> Any:
    """Parse a string value to bool / int / float where it looks like one."""
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return value
