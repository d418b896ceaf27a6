"""
Stowage Faults - base fault type, domains and severities.

Every error the package raises is a ``Fault``: an exception that also
carries a stable code, a domain, a severity and retry semantics, so
callers and listeners can branch on ``fault.code`` instead of parsing
messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


# ============================================================================
# Severity & Domain
# ============================================================================

class Severity(str, Enum):
    """How loudly a fault should be reported."""
    INFO = "info"
    WARN = "warn"       # Degraded, e.g. a fallback adapter was used
    ERROR = "error"     # The operation failed
    FATAL = "fatal"     # Misconfiguration; retrying cannot help


class FaultDomain:
    """
    Functional area a fault belongs to.

    Stowage uses three: ``CONFIG`` (settings and adapter resolution),
    ``STORAGE`` (operation outcomes) and ``IO`` (backend transport).
    """

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.description = description

    @property
    def value(self) -> str:
        return self.name

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"FaultDomain(name='{self.name}')"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, FaultDomain):
            return self.name == other.name
        return self.name == str(other)

    def __hash__(self) -> int:
        return hash(self.name)


FaultDomain.CONFIG = FaultDomain("config", "Storage configuration and adapter resolution")
FaultDomain.STORAGE = FaultDomain("storage", "Blob storage operation faults")
FaultDomain.IO = FaultDomain("io", "Backend transport and provider errors")


# Severity / retry defaults per domain
DOMAIN_DEFAULTS = {
    FaultDomain.CONFIG: {"severity": Severity.FATAL, "retryable": False},
    FaultDomain.STORAGE: {"severity": Severity.ERROR, "retryable": False},
    FaultDomain.IO: {"severity": Severity.WARN, "retryable": True},
}


# ============================================================================
# Fault - Base Class
# ============================================================================

class Fault(Exception):
    """
    Base fault: an exception with a machine-readable identity.

    Attributes:
        code: Stable identifier (e.g. ``"FILE_NOT_FOUND"``)
        message: Human-readable summary
        domain: ``FaultDomain`` the fault belongs to
        severity: Defaults from the domain when not given
        retryable: Defaults from the domain when not given
        metadata: Mutable context; the operation envelope adds the
            ``correlation_id`` here

    Subclasses may set ``code``, ``message`` and ``domain`` as class
    attributes instead of passing them.
    """

    def __init__(
        self,
        code: str | None = None,
        message: str | None = None,
        *,
        domain: FaultDomain | None = None,
        severity: Optional[Severity] = None,
        retryable: Optional[bool] = None,
        metadata: Optional[dict[str, Any]] = None,
    ):
        self.code = code if code is not None else getattr(self, "code", None)
        self.message = message if message is not None else getattr(self, "message", None)
        self.domain = domain if domain is not None else getattr(self, "domain", None)

        if self.code is None or self.message is None or self.domain is None:
            raise TypeError(f"{self.__class__.__name__} missing required code, message, or domain")

        super().__init__(self.message)

        defaults = DOMAIN_DEFAULTS.get(self.domain, {"severity": Severity.ERROR, "retryable": False})
        self.severity = severity or defaults["severity"]
        self.retryable = retryable if retryable is not None else defaults["retryable"]
        self.metadata = metadata or {}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(code={self.code!r}, domain={self.domain.value}, "
            f"severity={self.severity.value})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Serializable form for logs and listener payloads."""
        return {
            "code": self.code,
            "message": self.message,
            "domain": self.domain.value,
            "severity": self.severity.value,
            "retryable": self.retryable,
            "metadata": self.metadata,
        }
