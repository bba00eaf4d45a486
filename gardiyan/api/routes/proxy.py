"""
Object proxy endpoint.

Every GET that is not the health check lands here:
1. The request path becomes an object key (one leading "/" removed)
2. The object is fetched from the configured bucket
3. Failures are mapped to fixed 4xx responses
4. Successes are streamed back with a Content-Type inferred from the key

Each request ends with exactly one access-log line:
    <Outcome> - <client> - <diagnostic URL>
"""

import logging
from typing import AsyncIterator

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, StreamingResponse

from ...core.proxy import (
    ObjectFetchError,
    ObjectStreamError,
    ObjectTarget,
    ProxyFailure,
    derive_object_key,
    failure_for,
    infer_content_type,
    missing_bucket_failure,
    missing_key_failure,
)
from ...infrastructure.storage.client import StoredObject
from ..dependencies import SettingsDep, StorageClientDep

logger = logging.getLogger(__name__)

router = APIRouter()


def client_identifier(request: Request) -> str:
    """
    Who is asking, for the access log.

    X-Forwarded-For wins when present and non-empty. Never used for
    access decisions.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded
    if request.client is None:
        return ""
    return f"{request.client.host}:{request.client.port}"


def _log_access(outcome: str, client: str, url: str) -> None:
    logger.info("%s - %s - %s", outcome, client, url)


def _failure_response(failure: ProxyFailure, client: str, url: str) -> PlainTextResponse:
    _log_access(failure.outcome, client, url)
    return PlainTextResponse(failure.message, status_code=failure.status_code)


class ObjectStreamResponse(StreamingResponse):
    """
    StreamingResponse that always closes its body iterator.

    Starlette stops iterating on a client disconnect without closing the
    generator, which would leave the backend body open until garbage
    collection. Closing it here runs the generator's cleanup as soon as
    the response ends, however it ends.
    """

    async def __call__(self, scope, receive, send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            await self.body_iterator.aclose()


def _stream(stored: StoredObject, client: str, target: ObjectTarget) -> AsyncIterator[bytes]:
    """
    Copy the object body to the client chunk by chunk.

    Headers are already on the wire by the time this runs, so a failure
    here can only be logged; ObjectStreamError then makes the server drop
    the connection. The backend body is closed on every exit path.
    """

    async def body() -> AsyncIterator[bytes]:
        completed = False
        try:
            async for chunk in stored.iter_chunks():
                yield chunk
            completed = True
        except Exception as e:
            logger.error(
                "Object stream error: %s",
                e,
                extra={"bucket": target.bucket, "key": target.key},
            )
            raise ObjectStreamError(str(e)) from e
        finally:
            stored.close()
            if completed:
                _log_access("Success", client, target.url)
            else:
                logger.warning("Stream aborted - %s - %s", client, target.url)

    return body()


@router.get(
    "/{object_path:path}",
    summary="Fetch an object",
    description="Streams the object whose key is the request path.",
)
async def proxy_object(
    object_path: str,
    request: Request,
    settings: SettingsDep,
    storage: StorageClientDep,
):
    """
    Serve one object from the configured bucket.

    `object_path` is only used for routing; the key is derived from the
    raw ASGI path so that exactly one leading separator is removed.
    """
    client = client_identifier(request)
    path = request.scope["path"]

    key = derive_object_key(path)
    if not key:
        return _failure_response(missing_key_failure(), client, path)

    bucket = settings.s3_bucket_name
    if not bucket:
        return _failure_response(missing_bucket_failure(), client, path)

    target = ObjectTarget(bucket=bucket, key=key, url=settings.object_url(key))

    logger.debug("S3 URL: %s", target.url)
    logger.debug(
        "Guard checking storage cell for prisoner: %s in facility: %s",
        target.key,
        target.bucket,
    )

    try:
        stored = await storage.get_object(target.bucket, target.key)
    except ObjectFetchError as e:
        logger.debug("S3 file retrieval error: %s", e.detail or e.kind.value)
        logger.debug("Failed S3 URL would be: %s", target.url)
        return _failure_response(failure_for(e.kind), client, target.url)

    headers = {"Content-Type": infer_content_type(target.key)}
    if stored.content_length is not None:
        headers["Content-Length"] = str(stored.content_length)

    return ObjectStreamResponse(_stream(stored, client, target), headers=headers)
