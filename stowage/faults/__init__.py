"""
Stowage Faults - Typed fault signals for the storage subsystem.

Errors raised by the registry, the operation envelope, and the bundled
backends are structured ``Fault`` objects with a stable code, a domain,
and a severity, so callers branch on type or code, never on message text.
"""

from .core import (
    Fault,
    FaultDomain,
    Severity,
)

from .domains import (
    StorageErrorCode,
    StorageFault,
    StorageConfigurationFault,
    AdapterUnavailableFault,
    AdapterNotRegisteredFault,
    AdapterDisabledFault,
    AdapterNotReadyFault,
    FileNotFoundFault,
    FileAlreadyExistsFault,
    StorageValidationFault,
    InvalidFileTypeFault,
    FileTooLargeFault,
    InvalidKeyFault,
    StorageUploadFault,
    StorageDownloadFault,
    StorageDeleteFault,
    StorageListFault,
    StorageProviderFault,
    StorageProviderTimeoutFault,
    StorageAccessDeniedFault,
)

__all__ = [
    # Core types
    "Fault",
    "FaultDomain",
    "Severity",

    # Storage faults
    "StorageErrorCode",
    "StorageFault",
    "StorageConfigurationFault",
    "AdapterUnavailableFault",
    "AdapterNotRegisteredFault",
    "AdapterDisabledFault",
    "AdapterNotReadyFault",
    "FileNotFoundFault",
    "FileAlreadyExistsFault",
    "StorageValidationFault",
    "InvalidFileTypeFault",
    "FileTooLargeFault",
    "InvalidKeyFault",
    "StorageUploadFault",
    "StorageDownloadFault",
    "StorageDeleteFault",
    "StorageListFault",
    "StorageProviderFault",
    "StorageProviderTimeoutFault",
    "StorageAccessDeniedFault",
]
