"""
Object storage client for the proxy.

Supports AWS S3 and S3-compatible stores (MinIO, Huawei OBS, R2) through
boto3, with an in-memory mock for local development and tests.

Clients return a StoredObject whose body is read in chunks, or raise
ObjectFetchError tagged with a FailureKind. Callers never see botocore
exceptions.
"""

import io
import logging
from dataclasses import dataclass
from typing import AsyncIterator, BinaryIO, Iterable, Optional, Protocol

import boto3
from anyio import to_thread
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ...core.proxy.models import FailureKind, ObjectFetchError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

_ERROR_CODES = {
    "AccessDenied": FailureKind.ACCESS_DENIED,
    "NoSuchKey": FailureKind.NO_SUCH_KEY,
    "NoSuchBucket": FailureKind.NO_SUCH_BUCKET,
}


@dataclass
class StorageConfig:
    """Configuration for an S3-compatible store."""
    bucket_name: str
    region: str = "us-east-1"
    endpoint_url: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    force_path_style: bool = False
    disable_ssl: bool = False


@dataclass
class StoredObject:
    """
    An object ready to be streamed.

    `body` is a blocking file-like (botocore StreamingBody in production).
    Reads happen in a worker thread so the event loop is never blocked.
    """
    body: BinaryIO
    content_length: Optional[int] = None

    async def iter_chunks(self, chunk_size: int = CHUNK_SIZE) -> AsyncIterator[bytes]:
        while True:
            chunk = await to_thread.run_sync(self.body.read, chunk_size)
            if not chunk:
                break
            yield chunk

    def close(self) -> None:
        """Release the underlying connection. Safe to call more than once."""
        self.body.close()


class StorageClient(Protocol):
    """
    Protocol for object retrieval.

    The proxy only reads; anything that can fetch a key from a bucket
    can serve it.
    """

    async def get_object(self, bucket: str, key: str) -> StoredObject:
        """Fetch an object or raise ObjectFetchError."""
        ...


def classify_storage_error(error: Exception) -> FailureKind:
    """
    Reduce a backend exception to a FailureKind.

    Known error codes win. An "AccessDenied" anywhere in the message is
    still treated as access denied, since some S3-compatible stores
    report it without a proper code.
    """
    response = getattr(error, "response", None)
    if isinstance(response, dict):
        code = response.get("Error", {}).get("Code", "")
        if code in _ERROR_CODES:
            return _ERROR_CODES[code]

    if "AccessDenied" in str(error):
        return FailureKind.ACCESS_DENIED

    return FailureKind.UNKNOWN


class S3StorageClient:
    """
    S3 object storage client.

    Uses boto3 for both AWS and S3-compatible stores. boto3 is synchronous,
    so calls are handed to a worker thread.
    """

    def __init__(self, config: StorageConfig) -> None:
        self._config = config

        boto_config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path" if config.force_path_style else "virtual"},
        )

        client_kwargs = {
            "region_name": config.region,
            "config": boto_config,
        }
        if config.endpoint_url:
            client_kwargs["endpoint_url"] = config.endpoint_url
            client_kwargs["use_ssl"] = not config.disable_ssl
        # Empty credentials fall through to boto3's default provider chain
        if config.access_key_id and config.secret_access_key:
            client_kwargs["aws_access_key_id"] = config.access_key_id
            client_kwargs["aws_secret_access_key"] = config.secret_access_key

        self._s3_client = boto3.client("s3", **client_kwargs)

        if config.endpoint_url:
            logger.info(
                "Using S3-compatible endpoint: %s (PathStyle: %s)",
                config.endpoint_url,
                config.force_path_style,
            )
        else:
            logger.info("Using AWS S3 (region: %s)", config.region)

    async def get_object(self, bucket: str, key: str) -> StoredObject:
        """
        Fetch an object from S3.

        Only the request is made here. The body is left unread so the
        caller can stream it.
        """
        try:
            response = await to_thread.run_sync(
                lambda: self._s3_client.get_object(Bucket=bucket, Key=key)
            )
        except (ClientError, BotoCoreError) as e:
            kind = classify_storage_error(e)
            logger.debug(
                "S3 file retrieval error: %s",
                e,
                extra={"bucket": bucket, "key": key, "kind": kind.value},
            )
            raise ObjectFetchError(kind, str(e)) from e

        return StoredObject(
            body=response["Body"],
            content_length=response.get("ContentLength"),
        )


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockStorageClient:
    """
    In-memory storage for local development.

    Serves objects from a dictionary keyed by (bucket, key). Buckets exist
    when named at construction or once an object is put into them.
    """

    def __init__(self, buckets: Iterable[str] = ()) -> None:
        self._objects: dict[str, dict[str, bytes]] = {bucket: {} for bucket in buckets}
        logger.info("Initialized mock storage client (in-memory)")

    def put_object(self, bucket: str, key: str, data: bytes) -> None:
        """Seed an object."""
        self._objects.setdefault(bucket, {})[key] = data
        logger.debug(
            "Stored object in mock storage",
            extra={"bucket": bucket, "key": key, "size_bytes": len(data)},
        )

    async def get_object(self, bucket: str, key: str) -> StoredObject:
        """Serve an object from memory."""
        if bucket not in self._objects:
            raise ObjectFetchError(
                FailureKind.NO_SUCH_BUCKET,
                f"The specified bucket does not exist: {bucket}",
            )

        data = self._objects[bucket].get(key)
        if data is None:
            raise ObjectFetchError(
                FailureKind.NO_SUCH_KEY,
                f"The specified key does not exist: {key}",
            )

        return StoredObject(body=io.BytesIO(data), content_length=len(data))


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_client(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
) -> StorageClient:
    """
    Create storage client based on configuration.

    Args:
        config: Storage configuration (required if not mock_mode)
        mock_mode: If True, return an in-memory client. The configured
            bucket, if any, starts out empty.

    Returns:
        StorageClient implementation (S3 or Mock)
    """
    if mock_mode:
        buckets = [config.bucket_name] if config and config.bucket_name else []
        return MockStorageClient(buckets=buckets)

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return S3StorageClient(config)
