"""Request path sanitization and pretty-URL candidate resolution.

A request path goes through three steps before any backend sees it:

    raw request path -> normalize_request_path() -> NormalizedPath
                     -> candidate_paths()        -> ordered file paths to probe

Rejected paths (traversal above the root) come back as None, the same
outward signal as a missing file.
"""

from typing import NewType

# Root-relative, "/"-separated path with no empty, "." or ".." segments
NormalizedPath = NewType("NormalizedPath", str)

INDEX_FILE = "index.html"
HTML_SUFFIX = ".html"


def sanitize_relative_path(raw: str) -> str | None:
    """Collapse a relative path into clean "/"-separated segments.

    Empty and "." segments are dropped, ".." pops the previous segment.
    Everything else is kept verbatim; containment within a root is the
    caller's job.

    Args:
        raw: Untrusted relative path

    Returns:
        Cleaned path (possibly empty), or None if ".." would climb above
        the root
    """
    segments: list[str] = []
    for segment in raw.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if not segments:
                return None
            segments.pop()
            continue
        segments.append(segment)
    return "/".join(segments)


def normalize_request_path(request_path: str) -> NormalizedPath | None:
    """Turn an HTTP request path into a root-relative asset path.

    Args:
        request_path: Path as received on the wire (e.g., "/about")

    Returns:
        Normalized path ("index.html" for the site root), or None if the
        path tries to escape the root
    """
    trimmed = request_path.strip()
    if trimmed in ("", "/"):
        return NormalizedPath(INDEX_FILE)

    cleaned = sanitize_relative_path(trimmed.removeprefix("/"))
    if cleaned is None:
        return None
    return NormalizedPath(cleaned or INDEX_FILE)


def candidate_paths(normalized: NormalizedPath) -> list[str]:
    """List file paths to try for a normalized request path, in order.

    The exact path always comes first. Extensionless paths ("pretty URLs")
    also try "<path>.html" and then "<path>/index.html".
    """
    candidates = [str(normalized)]
    basename = normalized.rsplit("/", 1)[-1]
    if "." not in basename:
        candidates.append(f"{normalized}{HTML_SUFFIX}")
        candidates.append(f"{normalized}/{INDEX_FILE}")
    return candidates
