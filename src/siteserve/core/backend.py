"""Asset backends: bundled in-memory table or live directory on disk.

Both variants answer the same two questions: "what is served for this
request path?" and "is there a custom 404 page?". A backend is chosen once
at startup and only read afterwards, so a single instance is shared by all
requests without locking.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from types import MappingProxyType

from siteserve.core.media import cache_control_for, content_type_for
from siteserve.core.paths import (
    candidate_paths,
    normalize_request_path,
    sanitize_relative_path,
)

logger = logging.getLogger(__name__)

NOT_FOUND_PAGE = "404.html"


class AssetMode(StrEnum):
    """Where assets are served from."""

    EMBEDDED = "embedded"
    DISK = "disk"


@dataclass(frozen=True)
class AssetPayload:
    """A resolved asset ready to be written to a response."""

    body: bytes
    content_type: str
    cache_control: str | None

    @classmethod
    def for_path(cls, rel_path: str, body: bytes) -> AssetPayload:
        """Build a payload, deriving headers from the file extension."""
        return cls(
            body=body,
            content_type=content_type_for(rel_path),
            cache_control=cache_control_for(rel_path),
        )


class AssetBackend:
    """Common resolution logic shared by both backend variants.

    Subclasses implement `_load_candidate()` for a single sanitized
    relative path.
    """

    mode: AssetMode

    async def resolve(self, request_path: str) -> AssetPayload | None:
        """Resolve a request path through the pretty-URL fallback chain.

        Args:
            request_path: Path as received on the wire (e.g., "/about")

        Returns:
            First matching asset, or None if nothing matches or the path
            was rejected
        """
        normalized = normalize_request_path(request_path)
        if normalized is None:
            return None

        for candidate in candidate_paths(normalized):
            payload = await self.load(candidate)
            if payload is not None:
                return payload
        return None

    async def load_not_found_page(self) -> AssetPayload | None:
        """Load the site's custom 404 page, if it has one."""
        return await self.load(NOT_FOUND_PAGE)

    async def load(self, rel_path: str) -> AssetPayload | None:
        """Load a single relative path without any fallback."""
        cleaned = sanitize_relative_path(rel_path)
        if not cleaned:
            return None
        return await self._load_candidate(cleaned)

    async def _load_candidate(self, rel_path: str) -> AssetPayload | None:
        raise NotImplementedError


class EmbeddedBackend(AssetBackend):
    """Serves assets from a read-only in-memory table."""

    mode = AssetMode.EMBEDDED

    def __init__(self, assets: Mapping[str, bytes]) -> None:
        """Initialize with the asset table.

        Args:
            assets: Mapping of "/"-separated relative path to contents.
                A private read-only copy is kept.
        """
        self._assets: Mapping[str, bytes] = MappingProxyType(dict(assets))

    @classmethod
    def from_bundle(cls) -> EmbeddedBackend:
        """Create a backend holding the site bundled with the package."""
        from siteserve.assets import load_bundled_assets

        return cls(load_bundled_assets())

    def __len__(self) -> int:
        return len(self._assets)

    async def _load_candidate(self, rel_path: str) -> AssetPayload | None:
        body = self._assets.get(rel_path)
        if body is None:
            return None
        return AssetPayload.for_path(rel_path, bytes(body))


class DiskBackend(AssetBackend):
    """Serves assets read live from a directory.

    The root is canonicalized once, at construction. If that fails the
    backend is degraded: every lookup misses and it is never retried.
    Every hit is re-checked against the canonical root, so symlinks that
    point outside the root are never followed.
    """

    mode = AssetMode.DISK

    def __init__(self, root: Path) -> None:
        self._root = root
        self._canonical_root: Path | None
        try:
            self._canonical_root = root.resolve(strict=True)
        except OSError as e:
            logger.warning(
                f"Static directory {root} is not available ({e}); "
                "disk mode will return 404 for every request",
            )
            self._canonical_root = None

    @property
    def root(self) -> Path:
        """Configured root directory."""
        return self._root

    @property
    def canonical_root(self) -> Path | None:
        """Symlink-free absolute root, or None when degraded."""
        return self._canonical_root

    @property
    def degraded(self) -> bool:
        """True if the root could not be resolved at startup."""
        return self._canonical_root is None

    async def _load_candidate(self, rel_path: str) -> AssetPayload | None:
        if self._canonical_root is None:
            return None
        body = await asyncio.to_thread(self._read_contained, rel_path)
        if body is None:
            return None
        return AssetPayload.for_path(rel_path, body)

    def _read_contained(self, rel_path: str) -> bytes | None:
        """Read a file if it is a regular file inside the canonical root.

        Runs in a worker thread.
        """
        assert self._canonical_root is not None
        candidate = self._root / rel_path
        try:
            if not candidate.is_file():
                return None
            resolved = candidate.resolve(strict=True)
        except OSError:
            return None

        if not resolved.is_relative_to(self._canonical_root):
            logger.warning(
                f"Blocked {candidate} resolving to {resolved} outside static root",
            )
            return None

        try:
            return resolved.read_bytes()
        except OSError:
            return None


def create_backend(mode: AssetMode, static_dir: Path) -> AssetBackend:
    """Create the backend for the configured asset mode.

    Args:
        mode: Asset mode
        static_dir: Root directory for disk mode (ignored when embedded)

    Returns:
        Backend instance

    Raises:
        FileNotFoundError: If embedded mode is selected but no site is bundled
    """
    if mode is AssetMode.DISK:
        return DiskBackend(static_dir)
    return EmbeddedBackend.from_bundle()
