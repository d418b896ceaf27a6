"""
Stowage — pluggable blob storage with named adapters, fallback resolution,
and instrumented operations.

Quick start::

    from stowage import (
        AdapterConfig, StorageManager, StorageManagerConfig, StorageFile,
    )
    from stowage.adapters import LocalStorageAdapter, MemoryStorageAdapter

    manager = StorageManager(StorageManagerConfig(
        adapters=[
            AdapterConfig(name="local", config={"root_path": "./media"}, priority=10),
            AdapterConfig(name="memory", priority=1),
        ],
        default_adapter="local",
        enable_fallback=True,
    ))
    manager.register_factory("local", lambda cfg: LocalStorageAdapter(**cfg))
    manager.register_factory("memory", lambda cfg: MemoryStorageAdapter(**cfg))

    storage = manager.resolve_with_fallback()
    response = await storage.upload(StorageFile("hello.txt", b"hi", "text/plain"))
"""

from .adapter import BaseStorageAdapter, StorageAdapterProtocol
from .config import AdapterConfig, StorageManagerConfig
from .events import (
    OperationEvent,
    OperationFailedEvent,
    OperationSuccessEvent,
    StorageEvent,
    StorageEventEmitter,
    StorageOperation,
)
from .faults import (
    AdapterDisabledFault,
    AdapterNotReadyFault,
    AdapterNotRegisteredFault,
    AdapterUnavailableFault,
    Fault,
    FileAlreadyExistsFault,
    FileNotFoundFault,
    FileTooLargeFault,
    InvalidFileTypeFault,
    InvalidKeyFault,
    StorageAccessDeniedFault,
    StorageConfigurationFault,
    StorageDeleteFault,
    StorageDownloadFault,
    StorageErrorCode,
    StorageFault,
    StorageListFault,
    StorageProviderFault,
    StorageProviderTimeoutFault,
    StorageUploadFault,
    StorageValidationFault,
)
from .manager import AdapterRegistration, StorageManager
from .responses import (
    DeleteResponse,
    DownloadResponse,
    ExistsResponse,
    GetResponse,
    ListResponse,
    StorageError,
    StorageResponse,
    UploadResponse,
)
from .types import (
    DeleteOptions,
    DownloadOptions,
    ListOptions,
    ListResult,
    OperationOptions,
    StorageFile,
    StorageObject,
    StorageProvider,
    UploadOptions,
)

__version__ = "0.1.0"

__all__ = [
    # Registry
    "StorageManager",
    "AdapterRegistration",
    "StorageManagerConfig",
    "AdapterConfig",
    # Adapters
    "StorageAdapterProtocol",
    "BaseStorageAdapter",
    # Events
    "StorageEvent",
    "StorageOperation",
    "StorageEventEmitter",
    "OperationEvent",
    "OperationSuccessEvent",
    "OperationFailedEvent",
    # Types
    "StorageProvider",
    "StorageFile",
    "StorageObject",
    "ListResult",
    "OperationOptions",
    "UploadOptions",
    "DownloadOptions",
    "DeleteOptions",
    "ListOptions",
    # Responses
    "StorageResponse",
    "StorageError",
    "UploadResponse",
    "DownloadResponse",
    "DeleteResponse",
    "GetResponse",
    "ListResponse",
    "ExistsResponse",
    # Faults
    "Fault",
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
