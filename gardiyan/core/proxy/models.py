"""
Domain models for the object proxy.

These types describe what the proxy knows about a request and how a
failed fetch is reported back to the client. They carry no framework
or storage-library imports.
"""

from dataclasses import dataclass
from enum import Enum


class FailureKind(Enum):
    """
    Closed set of storage failures the proxy distinguishes.

    The value doubles as the outcome tag written to the access log.
    """
    ACCESS_DENIED = "AccessDenied"
    NO_SUCH_KEY = "NoSuchKey"
    NO_SUCH_BUCKET = "NoSuchBucket"
    UNKNOWN = "UnknownError"


class ObjectFetchError(Exception):
    """
    Raised by storage clients when an object cannot be retrieved.

    `detail` holds the backend's own error text. It is logged
    server-side and never sent to the client.
    """

    def __init__(self, kind: FailureKind, detail: str = "") -> None:
        super().__init__(detail or kind.value)
        self.kind = kind
        self.detail = detail


@dataclass(frozen=True)
class ProxyFailure:
    """Client-facing response for a request that could not be served."""
    status_code: int
    outcome: str
    message: str


@dataclass(frozen=True)
class ObjectTarget:
    """
    Where a request points in storage.

    `url` is diagnostic only: it is logged, never fetched.
    """
    bucket: str
    key: str
    url: str


class ObjectStreamError(Exception):
    """
    Raised when an object body fails after the response has started.

    The failure is logged where it happens. Raising it only tells the
    server to drop the connection, since the status is already sent.
    """
