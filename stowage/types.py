"""
Stowage Types — Value objects shared by every backend.

Files going in, objects coming out, and the per-operation option bags.
All option classes derive from ``OperationOptions`` so the operation
envelope can read a caller-supplied correlation id uniformly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

CORRELATION_ID_KEY = "correlation_id"


class StorageProvider(str, Enum):
    """Well-known backend families."""

    MEMORY = "memory"
    LOCAL = "local"
    S3 = "s3"
    AZURE = "azure"
    CLOUDINARY = "cloudinary"


@dataclass
class StorageFile:
    """Content plus descriptive metadata handed to ``upload()``."""

    filename: str
    content: bytes
    mime_type: str = "application/octet-stream"
    size: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.size is None:
            self.size = len(self.content)

    def __repr__(self) -> str:
        return f"StorageFile(filename={self.filename!r}, size={self.size}, mime_type={self.mime_type!r})"


@dataclass
class StorageObject:
    """Description of a stored object as reported by a backend."""

    key: str
    url: Optional[str] = None
    public_url: Optional[str] = None
    size: Optional[int] = None
    content_type: Optional[str] = None
    last_modified: Optional[datetime] = None
    etag: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "url": self.url,
            "public_url": self.public_url,
            "size": self.size,
            "content_type": self.content_type,
            "last_modified": self.last_modified.isoformat() if self.last_modified else None,
            "etag": self.etag,
            "metadata": self.metadata,
        }


@dataclass
class ListResult:
    """One page of an enumeration."""

    objects: List[StorageObject] = field(default_factory=list)
    has_more: bool = False
    next_continuation_token: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "objects": [obj.to_dict() for obj in self.objects],
            "has_more": self.has_more,
            "next_continuation_token": self.next_continuation_token,
        }


# ── Options ─────────────────────────────────────────────────────────


@dataclass
class OperationOptions:
    """Options common to every operation."""

    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def correlation_id(self) -> Optional[str]:
        """Caller-supplied correlation id (``metadata["correlation_id"]``)."""
        value = self.metadata.get(CORRELATION_ID_KEY)
        return str(value) if value else None


@dataclass
class UploadOptions(OperationOptions):
    key: Optional[str] = None
    public: bool = False
    content_type: Optional[str] = None
    expires_in: Optional[int] = None  # seconds, for signed URLs


@dataclass
class DownloadOptions(OperationOptions):
    expires_in: Optional[int] = None  # seconds, for signed URLs
    force_download: bool = False
    filename: Optional[str] = None


@dataclass
class DeleteOptions(OperationOptions):
    all_versions: bool = False


@dataclass
class ListOptions(OperationOptions):
    prefix: str = ""
    max_keys: Optional[int] = None
    continuation_token: Optional[str] = None
