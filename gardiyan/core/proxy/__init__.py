"""
Object proxy logic.

Key derivation, diagnostic URLs, content-type inference and the
failure table used by the HTTP layer.
"""

from .content_types import CONTENT_TYPES, DEFAULT_CONTENT_TYPE, infer_content_type
from .failures import (
    failure_for,
    missing_bucket_failure,
    missing_key_failure,
)
from .keys import build_object_url, derive_object_key, strip_scheme
from .models import (
    FailureKind,
    ObjectFetchError,
    ObjectStreamError,
    ObjectTarget,
    ProxyFailure,
)

__all__ = [
    "CONTENT_TYPES",
    "DEFAULT_CONTENT_TYPE",
    "infer_content_type",
    "failure_for",
    "missing_bucket_failure",
    "missing_key_failure",
    "build_object_url",
    "derive_object_key",
    "strip_scheme",
    "FailureKind",
    "ObjectFetchError",
    "ObjectStreamError",
    "ObjectTarget",
    "ProxyFailure",
]
