"""
Shared fixtures.

API tests build the real application and swap settings and storage
through FastAPI's dependency overrides, so no network or credentials
are needed.
"""

import pytest
from fastapi.testclient import TestClient

from gardiyan.api.dependencies import get_storage_client
from gardiyan.config.settings import Settings, get_settings
from gardiyan.infrastructure.storage.client import MockStorageClient
from gardiyan.main import create_app


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    """AWS-style configuration: bucket 'assets' in us-east-1."""
    return Settings(
        _env_file=None,
        s3_bucket_name="assets",
        s3_endpoint="",
        region="us-east-1",
        s3_disable_ssl=False,
        access_key_id="test-access-key",
        secret_access_key="test-secret-key",
    )


@pytest.fixture
def storage() -> MockStorageClient:
    return MockStorageClient(buckets=["assets"])


@pytest.fixture
def app(settings, storage):
    application = create_app()
    application.dependency_overrides[get_settings] = lambda: settings
    application.dependency_overrides[get_storage_client] = lambda: storage
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
