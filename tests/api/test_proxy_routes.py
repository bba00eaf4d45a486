"""
API tests for the proxy and health endpoints.

The application is exercised over HTTP with FastAPI's TestClient. Storage
is either the in-memory mock or a stub that fails in a chosen way.
"""

import io
import logging

import anyio
import pytest
from starlette.requests import ClientDisconnect

from gardiyan.api.dependencies import get_storage_client
from gardiyan.api.routes.health import HEALTH_MESSAGE
from gardiyan.config.settings import Settings, get_settings
from gardiyan.core.proxy import FailureKind, ObjectFetchError, ObjectStreamError
from gardiyan.core.proxy.failures import (
    ACCESS_DENIED_MESSAGE,
    BUCKET_NOT_FOUND_MESSAGE,
    NOT_FOUND_MESSAGE,
)
from gardiyan.infrastructure.storage.client import StoredObject

PROXY_LOGGER = "gardiyan.api.routes.proxy"


class FailingStorage:
    """Storage that fails every fetch with the same error."""

    def __init__(self, kind: FailureKind, detail: str = "backend internals: request id 42") -> None:
        self.kind = kind
        self.detail = detail
        self.calls = []

    async def get_object(self, bucket, key):
        self.calls.append((bucket, key))
        raise ObjectFetchError(self.kind, self.detail)


class ExplodingStorage:
    """Storage that must never be called."""

    async def get_object(self, bucket, key):
        raise AssertionError("storage should not be touched")


class StaticStorage:
    """Storage that hands back one prepared object."""

    def __init__(self, stored: StoredObject) -> None:
        self.stored = stored

    async def get_object(self, bucket, key):
        return self.stored


class TrackingBody(io.BytesIO):
    """BytesIO that counts close() calls."""

    close_calls = 0

    def close(self):
        self.close_calls += 1
        super().close()


class DroppingBody(TrackingBody):
    """Body whose backend connection drops after the first read."""

    def read(self, size=-1):
        if self.tell() == 0:
            return super().read(10)
        raise ConnectionResetError("backend dropped")


def use_storage(app, storage):
    app.dependency_overrides[get_storage_client] = lambda: storage


def use_settings(app, settings):
    app.dependency_overrides[get_settings] = lambda: settings


# ---------------------------------------------------------------------------
# Successful Fetches
# ---------------------------------------------------------------------------

class TestProxySuccess:
    """Objects that exist are streamed back with inferred headers."""

    def test_serves_nested_key_with_headers(self, client, storage):
        """GET /images/logo.png serves key images/logo.png from 'assets'."""
        payload = bytes(range(256)) * 4 + b"x" * 210
        assert len(payload) == 1234
        storage.put_object("assets", "images/logo.png", payload)

        response = client.get("/images/logo.png")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.headers["content-length"] == "1234"
        assert response.content == payload

    def test_content_type_has_no_charset_suffix(self, client, storage):
        storage.put_object("assets", "notes.txt", b"hello")

        response = client.get("/notes.txt")

        assert response.headers["content-type"] == "text/plain"

    def test_unknown_extension_is_octet_stream(self, client, storage):
        storage.put_object("assets", "data.bin", b"\x00\x01")

        response = client.get("/data.bin")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/octet-stream"

    def test_large_object_is_streamed_intact(self, client, storage):
        """Bodies bigger than one chunk arrive complete and in order."""
        payload = b"".join(bytes([i % 251]) * 1000 for i in range(300))
        storage.put_object("assets", "big.zip", payload)

        response = client.get("/big.zip")

        assert response.status_code == 200
        assert response.content == payload

    def test_logs_success_line(self, client, storage, caplog):
        storage.put_object("assets", "images/logo.png", b"png")
        caplog.set_level(logging.INFO, logger=PROXY_LOGGER)

        client.get("/images/logo.png", headers={"X-Forwarded-For": "198.51.100.4"})

        assert (
            "Success - 198.51.100.4 - https://assets.s3.us-east-1.amazonaws.com/images/logo.png"
            in caplog.messages
        )


# ---------------------------------------------------------------------------
# Interrupted Streams
# ---------------------------------------------------------------------------

def http_scope(path: str) -> dict:
    return {
        "type": "http",
        "asgi": {"version": "3.0", "spec_version": "2.4"},
        "http_version": "1.1",
        "method": "GET",
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "root_path": "",
        "query_string": b"",
        "headers": [(b"host", b"testserver")],
        "client": ("127.0.0.1", 5000),
        "server": ("testserver", 80),
    }


class TestInterruptedStreams:
    """Streams that end early still release the backend body."""

    def test_backend_failure_mid_stream(self, app, client, caplog):
        body = DroppingBody(b"0123456789" * 2)
        use_storage(app, StaticStorage(StoredObject(body=body, content_length=20)))
        caplog.set_level(logging.INFO)

        with pytest.raises(ObjectStreamError):
            client.get("/report.pdf")

        assert body.close_calls == 1
        assert "Object stream error: backend dropped" in caplog.messages
        assert (
            "Stream aborted - testclient:50000 - "
            "https://assets.s3.us-east-1.amazonaws.com/report.pdf"
        ) in caplog.messages
        assert not any(m.startswith("Success - ") for m in caplog.messages)
        assert "Unhandled exception" not in caplog.messages

    @pytest.mark.anyio
    async def test_client_disconnect_closes_body(self, app, caplog):
        body = TrackingBody(b"x" * (200 * 1024))
        use_storage(app, StaticStorage(StoredObject(body=body, content_length=200 * 1024)))
        caplog.set_level(logging.INFO, logger=PROXY_LOGGER)

        async def receive():
            await anyio.sleep_forever()

        async def send(message):
            if message["type"] == "http.response.body" and message.get("body"):
                raise OSError("client went away")

        with pytest.raises((OSError, ClientDisconnect)):
            await app(http_scope("/big.bin"), receive, send)

        assert body.close_calls == 1
        assert (
            "Stream aborted - 127.0.0.1:5000 - "
            "https://assets.s3.us-east-1.amazonaws.com/big.bin"
        ) in caplog.messages
        assert not any(m.startswith("Success - ") for m in caplog.messages)


# ---------------------------------------------------------------------------
# Bad Requests
# ---------------------------------------------------------------------------

class TestProxyBadRequest:
    """Requests that cannot name an object."""

    def test_root_path_is_400(self, app, client):
        use_storage(app, ExplodingStorage())

        response = client.get("/")

        assert response.status_code == 400
        assert response.text == "File path not specified"

    def test_missing_bucket_is_400(self, app, client):
        use_settings(app, Settings(_env_file=None, s3_bucket_name="", s3_endpoint=""))
        use_storage(app, ExplodingStorage())

        response = client.get("/images/logo.png")

        assert response.status_code == 400
        assert response.text == "bucket name not defined"

    def test_post_is_not_allowed(self, client):
        response = client.post("/images/logo.png")
        assert response.status_code == 405


# ---------------------------------------------------------------------------
# Storage Failures
# ---------------------------------------------------------------------------

class TestProxyFailures:
    """Storage failures map to fixed, non-leaking responses."""

    @pytest.mark.parametrize("kind,status,message", [
        (FailureKind.ACCESS_DENIED, 403, ACCESS_DENIED_MESSAGE),
        (FailureKind.NO_SUCH_KEY, 404, NOT_FOUND_MESSAGE),
        (FailureKind.NO_SUCH_BUCKET, 404, BUCKET_NOT_FOUND_MESSAGE),
        (FailureKind.UNKNOWN, 404, NOT_FOUND_MESSAGE),
    ])
    def test_failure_mapping(self, app, client, kind, status, message):
        storage = FailingStorage(kind)
        use_storage(app, storage)

        response = client.get("/secret/report.pdf")

        assert response.status_code == status
        assert response.text == message
        assert "request id 42" not in response.text
        assert storage.calls == [("assets", "secret/report.pdf")]

    def test_missing_object_from_mock_storage(self, client):
        response = client.get("/missing.txt")

        assert response.status_code == 404
        assert response.text == NOT_FOUND_MESSAGE

    def test_not_found_log_line(self, app, client, caplog):
        """The log names the outcome, the client and the diagnostic URL."""
        use_storage(app, FailingStorage(FailureKind.NO_SUCH_KEY))
        caplog.set_level(logging.INFO, logger=PROXY_LOGGER)

        client.get("/missing.txt", headers={"X-Forwarded-For": "203.0.113.7"})

        assert (
            "NoSuchKey - 203.0.113.7 - https://assets.s3.us-east-1.amazonaws.com/missing.txt"
            in caplog.messages
        )

    def test_log_falls_back_to_peer_address(self, app, client, caplog):
        use_storage(app, FailingStorage(FailureKind.ACCESS_DENIED))
        caplog.set_level(logging.INFO, logger=PROXY_LOGGER)

        client.get("/x.txt")

        line = next(m for m in caplog.messages if m.startswith("AccessDenied - "))
        assert line.startswith("AccessDenied - testclient")
        assert line.endswith(" - https://assets.s3.us-east-1.amazonaws.com/x.txt")

    def test_empty_forwarded_header_is_ignored(self, app, client, caplog):
        use_storage(app, FailingStorage(FailureKind.UNKNOWN))
        caplog.set_level(logging.INFO, logger=PROXY_LOGGER)

        client.get("/x.txt", headers={"X-Forwarded-For": ""})

        line = next(m for m in caplog.messages if m.startswith("UnknownError - "))
        assert line.startswith("UnknownError - testclient")

    def test_custom_endpoint_in_log(self, app, client, caplog):
        """Diagnostic URL uses bucket.endpoint even with path-style addressing."""
        use_settings(app, Settings(
            _env_file=None,
            s3_bucket_name="files",
            s3_endpoint="minio.local:9000",
            s3_force_path_style=True,
            s3_disable_ssl=False,
        ))
        use_storage(app, FailingStorage(FailureKind.NO_SUCH_KEY))
        caplog.set_level(logging.INFO, logger=PROXY_LOGGER)

        client.get("/a/b.json", headers={"X-Forwarded-For": "10.0.0.1"})

        assert "NoSuchKey - 10.0.0.1 - https://files.minio.local:9000/a/b.json" in caplog.messages


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

class TestHealth:
    """The health check is independent of storage."""

    def test_health_is_ok(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.text == HEALTH_MESSAGE
        assert response.headers["content-type"].startswith("text/plain")

    def test_health_ignores_broken_backend(self, app, client):
        use_settings(app, Settings(_env_file=None, s3_bucket_name="", s3_endpoint=""))
        use_storage(app, ExplodingStorage())

        response = client.get("/health")

        assert response.status_code == 200
        assert response.text == HEALTH_MESSAGE

    def test_docs_paths_are_proxied(self, client):
        """No OpenAPI routes shadow object keys."""
        response = client.get("/docs")

        assert response.status_code == 404
        assert response.text == NOT_FOUND_MESSAGE
