"""
Stowage utilities — key generation, filename hygiene, MIME lookup, paging.
"""

from __future__ import annotations

import mimetypes
import re
import secrets
import string
import time
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple, TypeVar

from .faults import StorageValidationFault

if TYPE_CHECKING:
    from .types import StorageFile, UploadOptions

T = TypeVar("T")

_KEY_ALPHABET = string.ascii_uppercase + string.digits

_MIME_OVERRIDES = {
    "webp": "image/webp",
    "7z": "application/x-7z-compressed",
    "rar": "application/x-rar-compressed",
    "flv": "video/x-flv",
    "wmv": "video/x-ms-wmv",
}


def generate_key(prefix: str = "FILE", extension: Optional[str] = None) -> str:
    """
    Generate a unique storage key.

    Format: ``{prefix}_{epoch_ms}_{8 random chars}[.{extension}]``
    """
    random_part = "".join(secrets.choice(_KEY_ALPHABET) for _ in range(8))
    key = f"{prefix}_{int(time.time() * 1000)}_{random_part}"
    return f"{key}.{extension}" if extension else key


def sanitize_filename(filename: str) -> str:
    """Replace anything outside ``[A-Za-z0-9._-]`` and collapse underscores."""
    cleaned = re.sub(r"[^A-Za-z0-9._-]", "_", filename)
    cleaned = re.sub(r"_{2,}", "_", cleaned)
    return cleaned.strip("_")


def normalize_path(path: str) -> str:
    """Use forward slashes and collapse repeated separators."""
    return re.sub(r"/+", "/", path.replace("\\", "/"))


def is_valid_key(key: str) -> bool:
    """A key is non-empty, has no leading/trailing slash and no empty segments."""
    return bool(key) and not key.startswith("/") and not key.endswith("/") and "//" not in key


def get_file_extension(filename: str) -> str:
    """Extension without the dot, or ``""``."""
    parts = filename.rsplit(".", 1)
    return parts[1] if len(parts) == 2 and parts[0] else ""


def get_mime_type(filename: str) -> str:
    """Best-effort MIME type from a filename; ``application/octet-stream`` if unknown."""
    ext = get_file_extension(filename).lower()
    if ext in _MIME_OVERRIDES:
        return _MIME_OVERRIDES[ext]
    guessed, _ = mimetypes.guess_type(f"file.{ext}") if ext else (None, None)
    return guessed or "application/octet-stream"


def format_size(num_bytes: float) -> str:
    """Human-readable size, e.g. ``1.50 KB``."""
    units = ("B", "KB", "MB", "GB", "TB")
    size = float(num_bytes)
    unit = 0
    while size >= 1024 and unit < len(units) - 1:
        size /= 1024
        unit += 1
    return f"{size:.2f} {units[unit]}"


def upload_metadata(file: "StorageFile", options: Optional["UploadOptions"] = None) -> Dict[str, Any]:
    """Metadata echoed back by ``upload()``: caller metadata plus filename and MIME type."""
    return {
        **(options.metadata if options else {}),
        "filename": file.filename,
        "mime_type": file.mime_type,
        **file.metadata,
    }


def paginate(items: Sequence[T], max_keys: Optional[int], token: Optional[str]) -> Tuple[List[T], Optional[str]]:
    """
    Slice one page out of an ordered sequence.

    The continuation token is the stringified offset of the next page.
    A ``max_keys`` of None or below 1 means no cap.

    Returns:
        ``(page, next_token)``; ``next_token`` is None on the last page.
    """
    start = 0
    if token:
        try:
            start = max(int(token), 0)
        except ValueError:
            raise StorageValidationFault(
                f"Malformed continuation token {token!r}", field="continuation_token"
            ) from None
    end = len(items) if not max_keys or max_keys < 1 else start + max_keys
    next_token = str(end) if end < len(items) else None
    return list(items[start:end]), next_token
