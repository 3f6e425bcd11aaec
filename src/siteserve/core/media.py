"""Content-type and cache policy derived from file extensions."""

import mimetypes
from pathlib import PurePosixPath

DEFAULT_CONTENT_TYPE = "application/octet-stream"

_IMMUTABLE = "public, max-age=31536000, immutable"

_CACHE_CONTROL: dict[str, str] = {
    "woff": _IMMUTABLE,
    "woff2": _IMMUTABLE,
    "png": _IMMUTABLE,
    "jpg": _IMMUTABLE,
    "jpeg": _IMMUTABLE,
    "gif": _IMMUTABLE,
    "svg": _IMMUTABLE,
    "webp": _IMMUTABLE,
    "css": _IMMUTABLE,
    "js": "public, max-age=86400",
    "html": "public, max-age=0, must-revalidate, stale-while-revalidate=30",
}

# Not every platform mimetypes database knows these
mimetypes.add_type("font/woff", ".woff")
mimetypes.add_type("font/woff2", ".woff2")
mimetypes.add_type("image/webp", ".webp")
mimetypes.add_type("image/svg+xml", ".svg")
mimetypes.add_type("text/javascript", ".js")


def _extension(path: str) -> str:
    return PurePosixPath(path).suffix.removeprefix(".").lower()


def content_type_for(path: str) -> str:
    """Guess the MIME essence (no parameters) for a file path.

    Args:
        path: Relative file path (e.g., "css/site.css")

    Returns:
        MIME type, or application/octet-stream when unknown
    """
    mime_type, _ = mimetypes.guess_type(PurePosixPath(path).name)
    return mime_type or DEFAULT_CONTENT_TYPE


def cache_control_for(path: str) -> str | None:
    """Return the Cache-Control directive for a file path, if any."""
    return _CACHE_CONTROL.get(_extension(path))
