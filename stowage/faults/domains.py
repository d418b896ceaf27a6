"""
Stowage Faults - Storage-specific fault types.

Provides concrete fault classes for the storage subsystem:
- CONFIGURATION faults (registry, resolution, adapter setup)
- NOT FOUND faults (missing keys)
- VALIDATION faults (file type, size, key shape)
- OPERATION faults (upload, download, delete, list)
- PROVIDER faults (vendor API errors, timeouts, access denied)

Every fault carries a stable ``StorageErrorCode`` so callers can branch
on ``fault.code`` (or on the class) instead of matching message text.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Optional

from .core import Fault, FaultDomain, Severity


class StorageErrorCode(str, Enum):
    """Stable machine-readable storage error codes."""

    STORAGE_CONFIGURATION_ERROR = "STORAGE_CONFIGURATION_ERROR"
    STORAGE_UPLOAD_ERROR = "STORAGE_UPLOAD_ERROR"
    STORAGE_DOWNLOAD_ERROR = "STORAGE_DOWNLOAD_ERROR"
    STORAGE_DELETE_ERROR = "STORAGE_DELETE_ERROR"
    STORAGE_LIST_ERROR = "STORAGE_LIST_ERROR"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    FILE_ALREADY_EXISTS = "FILE_ALREADY_EXISTS"
    INVALID_FILE_TYPE = "INVALID_FILE_TYPE"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    STORAGE_PROVIDER_ERROR = "STORAGE_PROVIDER_ERROR"
    STORAGE_PROVIDER_TIMEOUT = "STORAGE_PROVIDER_TIMEOUT"
    STORAGE_VALIDATION_ERROR = "STORAGE_VALIDATION_ERROR"
    INVALID_KEY = "INVALID_KEY"
    STORAGE_PERMISSION_ERROR = "STORAGE_PERMISSION_ERROR"
    STORAGE_ACCESS_DENIED = "STORAGE_ACCESS_DENIED"
    STORAGE_ERROR = "STORAGE_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


# ============================================================================
# Base
# ============================================================================

class StorageFault(Fault):
    """Base class for all storage-subsystem faults."""

    def __init__(
        self,
        message: str,
        *,
        code: StorageErrorCode = StorageErrorCode.STORAGE_ERROR,
        domain: FaultDomain = FaultDomain.STORAGE,
        severity: Severity = Severity.ERROR,
        retryable: bool = False,
        details: Optional[dict[str, Any]] = None,
    ):
        self.error_code = StorageErrorCode(code)
        super().__init__(
            code=self.error_code.value,
            message=message,
            domain=domain,
            severity=severity,
            retryable=retryable,
            metadata=dict(details or {}),
        )

    @property
    def details(self) -> dict[str, Any]:
        """Fault details (alias for metadata)."""
        return self.metadata

    @property
    def correlation_id(self) -> Optional[str]:
        """Correlation id of the operation that raised this fault, if known."""
        return self.metadata.get("correlation_id")


# ============================================================================
# Configuration Faults
# ============================================================================

class StorageConfigurationFault(StorageFault):
    """Adapter or manager configuration is invalid or incomplete."""

    def __init__(self, message: str, *, details: Optional[dict[str, Any]] = None):
        super().__init__(
            message,
            code=StorageErrorCode.STORAGE_CONFIGURATION_ERROR,
            domain=FaultDomain.CONFIG,
            severity=Severity.FATAL,
            details=details,
        )


class AdapterUnavailableFault(StorageConfigurationFault):
    """An adapter could not be resolved (not registered, disabled, or not ready)."""

    def __init__(self, adapter_name: str, message: str, *, details: Optional[dict[str, Any]] = None):
        self.adapter_name = adapter_name
        super().__init__(message, details={"adapter_name": adapter_name, **(details or {})})


class AdapterNotRegisteredFault(AdapterUnavailableFault):
    """No adapter instance is registered under the requested name."""

    def __init__(self, adapter_name: str, available: Iterable[str] = ()):
        super().__init__(
            adapter_name,
            f"Storage adapter '{adapter_name}' is not registered or enabled",
            details={"available_adapters": list(available)},
        )


class AdapterDisabledFault(AdapterNotRegisteredFault):
    """The adapter is registered but disabled by configuration."""


class AdapterNotReadyFault(AdapterUnavailableFault):
    """The adapter is registered but its readiness check fails."""

    def __init__(self, adapter_name: str):
        super().__init__(
            adapter_name,
            f"Storage adapter '{adapter_name}' is not ready. Please check configuration.",
        )


# ============================================================================
# Not Found / Conflict
# ============================================================================

class FileNotFoundFault(StorageFault):
    """No object exists under the requested key."""

    def __init__(self, key: str, *, details: Optional[dict[str, Any]] = None):
        self.key = key
        super().__init__(
            f"File with key '{key}' not found",
            code=StorageErrorCode.FILE_NOT_FOUND,
            severity=Severity.WARN,
            details={"key": key, **(details or {})},
        )


class FileAlreadyExistsFault(StorageFault):
    """An object already exists under the requested key."""

    def __init__(self, key: str, *, details: Optional[dict[str, Any]] = None):
        self.key = key
        super().__init__(
            f"File with key '{key}' already exists",
            code=StorageErrorCode.FILE_ALREADY_EXISTS,
            severity=Severity.WARN,
            details={"key": key, **(details or {})},
        )


# ============================================================================
# Validation Faults
# ============================================================================

class StorageValidationFault(StorageFault):
    """A request failed validation before reaching the backend."""

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        code: StorageErrorCode = StorageErrorCode.STORAGE_VALIDATION_ERROR,
        details: Optional[dict[str, Any]] = None,
    ):
        self.field = field
        super().__init__(
            message,
            code=code,
            severity=Severity.WARN,
            details={"field": field, **(details or {})},
        )


class InvalidFileTypeFault(StorageValidationFault):
    """File MIME type is not in the allowed set."""

    def __init__(self, file_type: str, allowed_types: Optional[list[str]] = None):
        if allowed_types:
            message = (
                f"File type '{file_type}' is not allowed. "
                f"Allowed types: {', '.join(allowed_types)}"
            )
        else:
            message = f"File type '{file_type}' is not allowed"
        super().__init__(
            message,
            field="mime_type",
            code=StorageErrorCode.INVALID_FILE_TYPE,
            details={"file_type": file_type, "allowed_types": allowed_types},
        )


class FileTooLargeFault(StorageValidationFault):
    """File size exceeds the configured maximum."""

    def __init__(self, size: int, max_size: int):
        super().__init__(
            f"File size {size} bytes exceeds maximum allowed size of {max_size} bytes",
            field="size",
            code=StorageErrorCode.FILE_TOO_LARGE,
            details={"size": size, "max_size": max_size},
        )


class InvalidKeyFault(StorageValidationFault):
    """Storage key is malformed or escapes the backend's namespace."""

    def __init__(self, key: str, reason: Optional[str] = None):
        self.key = key
        message = f"Invalid storage key '{key}': {reason}" if reason else f"Invalid storage key '{key}'"
        super().__init__(
            message,
            field="key",
            code=StorageErrorCode.INVALID_KEY,
            details={"key": key, "reason": reason},
        )


# ============================================================================
# Operation Faults
# ============================================================================

class StorageUploadFault(StorageFault):
    """Upload failed inside the backend."""

    def __init__(self, message: str, *, details: Optional[dict[str, Any]] = None):
        super().__init__(message, code=StorageErrorCode.STORAGE_UPLOAD_ERROR, details=details)


class StorageDownloadFault(StorageFault):
    """Download failed inside the backend."""

    def __init__(self, message: str, *, details: Optional[dict[str, Any]] = None):
        super().__init__(message, code=StorageErrorCode.STORAGE_DOWNLOAD_ERROR, details=details)


class StorageDeleteFault(StorageFault):
    """Delete failed inside the backend."""

    def __init__(self, message: str, *, details: Optional[dict[str, Any]] = None):
        super().__init__(message, code=StorageErrorCode.STORAGE_DELETE_ERROR, details=details)


class StorageListFault(StorageFault):
    """Listing failed inside the backend."""

    def __init__(self, message: str, *, details: Optional[dict[str, Any]] = None):
        super().__init__(message, code=StorageErrorCode.STORAGE_LIST_ERROR, details=details)


# ============================================================================
# Provider Faults
# ============================================================================

class StorageProviderFault(StorageFault):
    """A vendor API call failed."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        code: StorageErrorCode = StorageErrorCode.STORAGE_PROVIDER_ERROR,
        retryable: bool = True,
        details: Optional[dict[str, Any]] = None,
    ):
        self.status_code = status_code
        super().__init__(
            message,
            code=code,
            domain=FaultDomain.IO,
            severity=Severity.ERROR,
            retryable=retryable,
            details={"status_code": status_code, **(details or {})},
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["status_code"] = self.status_code
        return data


class StorageProviderTimeoutFault(StorageProviderFault):
    """A vendor API call timed out."""

    def __init__(
        self,
        message: str = "Storage provider request timed out",
        *,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message,
            status_code=408,
            code=StorageErrorCode.STORAGE_PROVIDER_TIMEOUT,
            details=details,
        )


class StorageAccessDeniedFault(StorageFault):
    """Credentials lack permission for the requested operation."""

    def __init__(
        self,
        message: str = "Storage access denied",
        *,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code=StorageErrorCode.STORAGE_ACCESS_DENIED, details=details)
