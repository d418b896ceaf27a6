"""
S3 storage adapter — Amazon S3 (or any S3-compatible endpoint) via aiobotocore.

Features:
- Async S3 client via aiobotocore, opened lazily on first use
- IAM / environment credential auto-discovery when no keys are given
- Presigned GET/PUT URLs when ``expires_in`` is requested
- Custom endpoints (MinIO, LocalStack, R2) with path-style addressing
- ``NoSuchKey`` / 404 mapped to ``FileNotFoundFault``; other client
  errors come back as failed responses

Dependencies:
    pip install stowage[s3]

Usage::

    adapter = S3StorageAdapter(
        bucket="media",
        region="eu-west-1",
    )
    await adapter.initialize()
    response = await adapter.upload(StorageFile("a.png", data, "image/png"))
    await adapter.shutdown()
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ..adapter import BaseStorageAdapter
from ..events import StorageEventEmitter
from ..faults import (
    FileNotFoundFault,
    StorageAccessDeniedFault,
    StorageConfigurationFault,
    StorageProviderFault,
)
from ..responses import (
    DeleteResponse,
    DownloadResponse,
    ExistsResponse,
    GetResponse,
    ListResponse,
    StorageResponse,
    UploadResponse,
)
from ..types import (
    DeleteOptions,
    DownloadOptions,
    ListOptions,
    ListResult,
    StorageFile,
    StorageObject,
    UploadOptions,
)
from ..utils import generate_key, get_file_extension, upload_metadata

logger = logging.getLogger("stowage.adapters.s3")

_NOT_FOUND_CODES = frozenset({"NoSuchKey", "NotFound", "404"})
_ACCESS_DENIED_CODES = frozenset({"AccessDenied", "403", "InvalidAccessKeyId", "SignatureDoesNotMatch"})


class S3StorageAdapter(BaseStorageAdapter):
    """
    Async Amazon S3 storage adapter.

    Args:
        bucket: Target bucket.
        region: AWS region of the bucket.
        aws_access_key_id / aws_secret_access_key / aws_session_token:
            Explicit credentials (None = environment / IAM role).
        endpoint_url: Custom S3-compatible endpoint.
        force_path_style: Use ``endpoint/bucket/key`` addressing.
        public_url_base: Base for ``public_url`` (for example a CDN).
    """

    provider = "s3"

    def __init__(
        self,
        bucket: Optional[str] = None,
        region: Optional[str] = None,
        *,
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
        aws_session_token: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        force_path_style: bool = False,
        public_url_base: Optional[str] = None,
        name: Optional[str] = None,
        event_emitter: Optional[StorageEventEmitter] = None,
    ):
        self.bucket = bucket
        self.region = region
        self.aws_access_key_id = aws_access_key_id
        self.aws_secret_access_key = aws_secret_access_key
        self.aws_session_token = aws_session_token
        self.endpoint_url = endpoint_url
        self.force_path_style = force_path_style
        self.public_url_base = public_url_base.rstrip("/") if public_url_base else None

        # Client state
        self._client: Any = None
        self._client_ctx: Any = None
        super().__init__(name, event_emitter=event_emitter)

    def validate_config(self) -> None:
        if bool(self.aws_access_key_id) != bool(self.aws_secret_access_key):
            raise StorageConfigurationFault(
                "S3 credentials need both aws_access_key_id and aws_secret_access_key",
                details={"provider": self.provider},
            )

    def is_ready(self) -> bool:
        return bool(self.bucket and self.region)

    # ── Lifecycle ───────────────────────────────────────────────────

    async def initialize(self) -> None:
        """Open the aiobotocore S3 client."""
        if self._client is not None:
            return

        logger.info(f"S3 adapter '{self.name}' initializing (bucket={self.bucket}, region={self.region})")
        try:
            import aiobotocore.session
        except ImportError:
            raise ImportError(
                "aiobotocore is required for the S3 storage adapter. "
                "Install with: pip install stowage[s3]"
            ) from None

        session = aiobotocore.session.get_session()
        kwargs: Dict[str, Any] = {
            "service_name": "s3",
            "region_name": self.region,
        }
        if self.aws_access_key_id:
            kwargs["aws_access_key_id"] = self.aws_access_key_id
            kwargs["aws_secret_access_key"] = self.aws_secret_access_key
        if self.aws_session_token:
            kwargs["aws_session_token"] = self.aws_session_token
        if self.endpoint_url:
            kwargs["endpoint_url"] = self.endpoint_url
        if self.force_path_style:
            from aiobotocore.config import AioConfig
            kwargs["config"] = AioConfig(s3={"addressing_style": "path"})

        self._client_ctx = session.create_client(**kwargs)
        self._client = await self._client_ctx.__aenter__()

    async def shutdown(self) -> None:
        """Close the S3 client."""
        if self._client_ctx is not None:
            try:
                await self._client_ctx.__aexit__(None, None, None)
            except Exception as e:
                logger.debug(f"S3 client close error: {e}")
        self._client = None
        self._client_ctx = None

    async def _get_client(self) -> Any:
        if self._client is None:
            await self.initialize()
        return self._client

    # ── URLs ────────────────────────────────────────────────────────

    def _url(self, key: str) -> str:
        if self.endpoint_url:
            base = self.endpoint_url.rstrip("/")
            return f"{base}/{self.bucket}/{key}"
        if self.force_path_style:
            return f"https://s3.{self.region}.amazonaws.com/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def _public_url(self, key: str) -> str:
        if self.public_url_base:
            return f"{self.public_url_base}/{key}"
        return self._url(key)

    async def _presign(self, method: str, key: str, expires_in: int, **params: Any) -> str:
        client = await self._get_client()
        return await client.generate_presigned_url(
            method,
            Params={"Bucket": self.bucket, "Key": key, **params},
            ExpiresIn=expires_in,
        )

    # ── Operations ──────────────────────────────────────────────────

    async def _perform_upload(self, file: StorageFile, options: Optional[UploadOptions]) -> UploadResponse:
        if options and options.key:
            key = options.key
        else:
            key = generate_key(extension=get_file_extension(file.filename) or None)
        metadata = upload_metadata(file, options)
        params: Dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": file.content,
            "ContentType": (options.content_type if options else None) or file.mime_type,
            "Metadata": {str(k): str(v) for k, v in metadata.items()},
        }
        if options and options.public:
            params["ACL"] = "public-read"

        client = await self._get_client()
        try:
            await client.put_object(**params)
        except Exception as e:
            return self._client_failure(UploadResponse, e, key, "Failed to upload file")

        url = self._url(key)
        if options and options.expires_in:
            url = await self._presign("get_object", key, options.expires_in)
        return UploadResponse(
            success=True,
            key=key,
            url=url,
            public_url=self._public_url(key) if options and options.public else None,
            size=file.size,
            metadata=metadata,
        )

    async def _perform_download(self, key: str, options: Optional[DownloadOptions]) -> DownloadResponse:
        client = await self._get_client()
        try:
            await client.head_object(Bucket=self.bucket, Key=key)
        except Exception as e:
            return self._client_failure(DownloadResponse, e, key, "Failed to download file")

        signed_url = None
        if options and options.expires_in:
            params: Dict[str, Any] = {}
            if options.force_download:
                filename = options.filename or key.rsplit("/", 1)[-1]
                params["ResponseContentDisposition"] = f'attachment; filename="{filename}"'
            signed_url = await self._presign("get_object", key, options.expires_in, **params)

        return DownloadResponse(success=True, url=self._url(key), signed_url=signed_url)

    async def _perform_delete(self, key: str, options: Optional[DeleteOptions]) -> DeleteResponse:
        client = await self._get_client()
        try:
            # S3 deletes are idempotent; check first so a missing key surfaces.
            await client.head_object(Bucket=self.bucket, Key=key)
            if options and options.all_versions:
                await self._delete_versions(client, key)
            else:
                await client.delete_object(Bucket=self.bucket, Key=key)
        except Exception as e:
            return self._client_failure(DeleteResponse, e, key, "Failed to delete file")
        return DeleteResponse(success=True, key=key)

    async def _delete_versions(self, client: Any, key: str) -> None:
        response = await client.list_object_versions(Bucket=self.bucket, Prefix=key)
        entries = response.get("Versions", []) + response.get("DeleteMarkers", [])
        for entry in entries:
            if entry.get("Key") == key:
                await client.delete_object(Bucket=self.bucket, Key=key, VersionId=entry["VersionId"])

    async def _perform_get(self, key: str) -> GetResponse:
        client = await self._get_client()
        try:
            head = await client.head_object(Bucket=self.bucket, Key=key)
        except Exception as e:
            return self._client_failure(GetResponse, e, key, "Failed to get file metadata")

        return GetResponse(
            success=True,
            object=StorageObject(
                key=key,
                url=self._url(key),
                size=head.get("ContentLength"),
                content_type=head.get("ContentType"),
                last_modified=head.get("LastModified"),
                etag=(head.get("ETag") or "").strip('"') or None,
                metadata=dict(head.get("Metadata") or {}),
            ),
        )

    async def _perform_list(self, options: Optional[ListOptions]) -> ListResponse:
        options = options or ListOptions()
        params: Dict[str, Any] = {"Bucket": self.bucket, "Prefix": options.prefix}
        if options.max_keys and options.max_keys > 0:
            params["MaxKeys"] = options.max_keys
        if options.continuation_token:
            params["ContinuationToken"] = options.continuation_token

        client = await self._get_client()
        try:
            response = await client.list_objects_v2(**params)
        except Exception as e:
            return self._client_failure(ListResponse, e, None, "Failed to list files")

        objects = [
            StorageObject(
                key=item["Key"],
                url=self._url(item["Key"]),
                size=item.get("Size"),
                last_modified=item.get("LastModified"),
                etag=(item.get("ETag") or "").strip('"') or None,
            )
            for item in response.get("Contents", [])
        ]
        return ListResponse(
            success=True,
            result=ListResult(
                objects=objects,
                has_more=bool(response.get("IsTruncated")),
                next_continuation_token=response.get("NextContinuationToken"),
            ),
        )

    async def _perform_exists(self, key: str) -> ExistsResponse:
        client = await self._get_client()
        try:
            await client.head_object(Bucket=self.bucket, Key=key)
        except Exception as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return ExistsResponse(success=True, exists=False)
            return self._client_failure(ExistsResponse, e, key, "Failed to check file existence")
        return ExistsResponse(success=True, exists=True)

    # ── Error classification ────────────────────────────────────────

    def _client_failure(self, response_cls: type, exc: Exception, key: Optional[str], message: str) -> Any:
        """
        Classify a client error.

        Not-found raises ``FileNotFoundFault``; everything else becomes a
        failed response of ``response_cls``.
        """
        code = _error_code(exc)
        if code is None:
            raise exc
        if code in _NOT_FOUND_CODES and key is not None:
            raise FileNotFoundFault(key) from exc

        status = _status_code(exc)
        logger.warning(f"S3 {code} on '{key}' in bucket '{self.bucket}': {exc}")
        if code in _ACCESS_DENIED_CODES:
            fault = StorageAccessDeniedFault(details={"bucket": self.bucket, "key": key, "aws_code": code})
        else:
            fault = StorageProviderFault(
                f"{message}: {exc}",
                status_code=status,
                details={"bucket": self.bucket, "key": key, "aws_code": code},
            )
        result: StorageResponse = response_cls.failure_from_exception(fault, message)
        result.raw = getattr(exc, "response", None)
        return result

    def __repr__(self) -> str:
        return f"S3StorageAdapter(name={self.name!r}, bucket={self.bucket!r}, region={self.region!r})"


def _error_code(exc: BaseException) -> Optional[str]:
    """AWS error code of a botocore ``ClientError``, else None."""
    response = getattr(exc, "response", None)
    if not isinstance(response, dict):
        return None
    return str(response.get("Error", {}).get("Code", "")) or None


def _status_code(exc: BaseException) -> Optional[int]:
    response = getattr(exc, "response", None) or {}
    return response.get("ResponseMetadata", {}).get("HTTPStatusCode")
