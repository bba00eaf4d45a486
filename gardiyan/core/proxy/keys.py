"""
Request path to object key translation, and the diagnostic URL that
describes where a key lives.
"""

from typing import Optional


def derive_object_key(path: str) -> str:
    """
    Turn a request path into an object key.

    Exactly one leading "/" is removed. Everything else, including
    nested separators and a second leading "/", is kept as-is.
    """
    if path.startswith("/"):
        return path[1:]
    return path


def strip_scheme(endpoint: str) -> str:
    """Remove an http:// or https:// prefix from an endpoint."""
    endpoint = endpoint.removeprefix("http://")
    return endpoint.removeprefix("https://")


def build_object_url(
    bucket: str,
    key: str,
    region: str,
    endpoint: Optional[str] = None,
    disable_ssl: bool = False,
) -> str:
    """
    Build the URL used in logs to identify an object.

    Custom endpoints (MinIO, OBS, ...) produce
    `{scheme}://{bucket}.{endpoint}/{key}`; AWS produces the regional
    virtual-host form. The URL is always virtual-host style, even when
    the storage client itself is configured for path-style addressing.
    """
    if endpoint:
        scheme = "http" if disable_ssl else "https"
        return f"{scheme}://{bucket}.{strip_scheme(endpoint)}/{key}"
    return f"https://{bucket}.s3.{region}.amazonaws.com/{key}"
