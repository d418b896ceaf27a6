"""
Stowage Responses — the uniform Outcome shape of every operation.

Each response is either a success with its payload fields populated, or
a failure with ``error`` populated and every payload field left empty.
The invariant is checked at construction so a partially populated
response can never cross the adapter boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, ClassVar, Dict, Optional, Tuple

from .faults import StorageErrorCode, StorageFault
from .types import ListResult, StorageObject


@dataclass
class StorageError:
    """Error payload of a failed response."""

    code: str
    message: str
    details: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


@dataclass
class StorageResponse:
    """Base response: ``success`` plus either payload fields or ``error``."""

    success: bool
    error: Optional[StorageError] = None
    raw: Any = None
    correlation_id: Optional[str] = None

    _payload_fields: ClassVar[Tuple[str, ...]] = ()

    def __post_init__(self) -> None:
        if self.success and self.error is not None:
            raise ValueError(f"{type(self).__name__}: successful response cannot carry an error")
        if not self.success:
            if self.error is None:
                raise ValueError(f"{type(self).__name__}: failed response requires an error")
            populated = [name for name in self._payload_fields if getattr(self, name) is not None]
            if populated:
                raise ValueError(
                    f"{type(self).__name__}: failed response cannot carry payload {populated}"
                )

    @property
    def is_success(self) -> bool:
        return self.success

    @classmethod
    def failure(
        cls,
        code: str,
        message: str,
        details: Any = None,
        *,
        raw: Any = None,
    ) -> "StorageResponse":
        """Build a failed response of this type."""
        return cls(success=False, error=StorageError(code=code, message=message, details=details), raw=raw)

    @classmethod
    def failure_from_exception(cls, exc: BaseException, default_message: str) -> "StorageResponse":
        """
        Translate a backend I/O exception into a failed response.

        Faults keep their own code; anything else is reported as
        ``STORAGE_ERROR`` with the exception attached as details.
        """
        if isinstance(exc, StorageFault):
            return cls.failure(exc.code, exc.message or default_message, exc.details)
        return cls.failure(
            StorageErrorCode.STORAGE_ERROR.value,
            str(exc) or default_message,
            exc,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": self.success}
        for f in fields(self):
            if f.name in ("success", "raw"):
                continue
            value = getattr(self, f.name)
            if value is None:
                continue
            data[f.name] = value.to_dict() if hasattr(value, "to_dict") else value
        return data


@dataclass
class UploadResponse(StorageResponse):
    key: Optional[str] = None
    url: Optional[str] = None
    public_url: Optional[str] = None
    size: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = None

    _payload_fields: ClassVar[Tuple[str, ...]] = ("key", "url", "public_url", "size", "metadata")


@dataclass
class DownloadResponse(StorageResponse):
    url: Optional[str] = None
    signed_url: Optional[str] = None
    content: Optional[bytes] = None
    metadata: Optional[Dict[str, Any]] = None

    _payload_fields: ClassVar[Tuple[str, ...]] = ("url", "signed_url", "content", "metadata")


@dataclass
class DeleteResponse(StorageResponse):
    key: Optional[str] = None

    _payload_fields: ClassVar[Tuple[str, ...]] = ("key",)


@dataclass
class GetResponse(StorageResponse):
    object: Optional[StorageObject] = None

    _payload_fields: ClassVar[Tuple[str, ...]] = ("object",)


@dataclass
class ListResponse(StorageResponse):
    result: Optional[ListResult] = None

    _payload_fields: ClassVar[Tuple[str, ...]] = ("result",)


@dataclass
class ExistsResponse(StorageResponse):
    exists: Optional[bool] = None

    _payload_fields: ClassVar[Tuple[str, ...]] = ("exists",)
