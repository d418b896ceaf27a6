"""
Upload validation interceptor — rejects uploads before they reach a backend.

Runs on ``BEFORE_UPLOAD``; raising there vetoes the upload, so the
caller receives the validation fault and the backend is never called.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..events import OperationEvent, StorageEvent, StorageEventEmitter
from ..faults import FileTooLargeFault, InvalidFileTypeFault, StorageValidationFault

logger = logging.getLogger("stowage.listeners.validation")

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB


class UploadValidationInterceptor:
    """
    Enforces size, MIME type, and filename rules on uploads.

    Args:
        emitter: Bus to subscribe to.
        max_file_size: Largest accepted ``StorageFile.size`` in bytes.
        allowed_mime_types: If non-empty, the only accepted MIME types.
        blocked_filenames: Filenames rejected outright (case-insensitive).
    """

    def __init__(
        self,
        emitter: StorageEventEmitter,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        allowed_mime_types: Optional[Iterable[str]] = None,
        blocked_filenames: Optional[Iterable[str]] = None,
    ):
        self.emitter = emitter
        self.max_file_size = max_file_size
        self.allowed_mime_types = list(allowed_mime_types or [])
        self.blocked_filenames = {name.lower() for name in (blocked_filenames or [])}
        self._unsubscribe = emitter.subscribe(StorageEvent.BEFORE_UPLOAD, self.validate)

    def validate(self, event: OperationEvent) -> None:
        file = event.file
        if file is None:
            return

        if file.size is not None and file.size > self.max_file_size:
            logger.info(f"[{event.correlation_id}] rejected {file.filename}: {file.size} bytes")
            raise FileTooLargeFault(file.size, self.max_file_size)

        if self.allowed_mime_types and file.mime_type not in self.allowed_mime_types:
            logger.info(f"[{event.correlation_id}] rejected {file.filename}: type {file.mime_type}")
            raise InvalidFileTypeFault(file.mime_type, self.allowed_mime_types)

        if file.filename.lower() in self.blocked_filenames:
            logger.info(f"[{event.correlation_id}] rejected blocked filename {file.filename}")
            raise StorageValidationFault(
                f"Filename '{file.filename}' is not allowed",
                field="filename",
                details={"filename": file.filename},
            )

    def close(self) -> None:
        self._unsubscribe()
