"""
Content-Type inference from object key extensions.

The decision is made from the extension alone. Object bytes are never
inspected.
"""

from types import MappingProxyType

DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES = MappingProxyType({
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".json": "application/json",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".xml": "application/xml",
    ".zip": "application/zip",
})


def _extension(key: str) -> str:
    # Dotfiles count too: "assets/.png" has extension ".png"
    name = key.rsplit("/", 1)[-1]
    if "." not in name:
        return ""
    return "." + name.rsplit(".", 1)[-1]


def infer_content_type(key: str) -> str:
    """Map a key to a MIME type by its (case-insensitive) extension."""
    return CONTENT_TYPES.get(_extension(key).lower(), DEFAULT_CONTENT_TYPE)
