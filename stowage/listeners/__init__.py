"""
Stowage Listeners — ready-made event subscribers.
"""

from .logs import StorageLoggingListener
from .metrics import OperationStats, StorageMetricsCollector
from .validation import UploadValidationInterceptor

__all__ = [
    "OperationStats",
    "StorageLoggingListener",
    "StorageMetricsCollector",
    "UploadValidationInterceptor",
]
