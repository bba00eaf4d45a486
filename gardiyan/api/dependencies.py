"""
FastAPI dependency injection.

Dependencies hand route handlers the frozen settings and the shared
storage client. Tests replace either one through app.dependency_overrides.
"""

import logging
import threading
from typing import Annotated

from fastapi import Depends

from ..config.settings import Settings, get_settings
from ..infrastructure.storage.client import StorageClient, StorageConfig, create_storage_client

logger = logging.getLogger(__name__)

# One client per process, created on first use. FastAPI runs sync
# dependencies in its threadpool, so creation is serialized.
_storage_client = None
_storage_client_lock = threading.Lock()


def get_storage_client(
    settings: Annotated[Settings, Depends(get_settings)],
) -> StorageClient:
    """
    Provide the storage client used to fetch objects.

    Returns either an S3 client or the in-memory mock based on settings.
    The client is built once and shared by all requests; it holds no
    per-request state.
    """
    global _storage_client

    if _storage_client is not None:
        return _storage_client

    with _storage_client_lock:
        if _storage_client is None:
            config = StorageConfig(
                bucket_name=settings.s3_bucket_name,
                region=settings.region,
                endpoint_url=settings.endpoint_url,
                access_key_id=settings.access_key_id or None,
                secret_access_key=settings.secret_access_key or None,
                force_path_style=settings.s3_force_path_style,
                disable_ssl=settings.s3_disable_ssl,
            )
            _storage_client = create_storage_client(
                config=config,
                mock_mode=settings.storage_mock_mode,
            )
            logger.info(
                "Created shared storage client",
                extra={"mock_mode": settings.storage_mock_mode},
            )

    return _storage_client


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

StorageClientDep = Annotated[StorageClient, Depends(get_storage_client)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
