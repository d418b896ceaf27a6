"""
Stowage Adapters — bundled storage backends.

Included backends:
- Memory (dev/tests)          — stowage.adapters.memory
- Local filesystem            — stowage.adapters.local
- Amazon S3 (aiobotocore)     — stowage.adapters.s3

Every backend subclasses ``BaseStorageAdapter`` and therefore satisfies
``StorageAdapterProtocol``.
"""

from .memory import MemoryStorageAdapter
from .local import LocalStorageAdapter
from .s3 import S3StorageAdapter

__all__ = [
    "MemoryStorageAdapter",
    "LocalStorageAdapter",
    "S3StorageAdapter",
]
