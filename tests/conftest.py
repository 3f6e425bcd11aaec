"""Shared test fixtures."""

from pathlib import Path

import pytest
from siteserve.assets import load_bundled_assets
from siteserve.config import AssetsConfig, Config, ServerConfig
from siteserve.core.backend import AssetBackend, AssetMode, DiskBackend, EmbeddedBackend

SITE_FILES = {
    "index.html": "<h1>Home</h1>",
    "about.html": "<h1>About</h1>",
    "404.html": "<h1>Not here</h1>",
    "css/site.css": "body { margin: 0; }",
    "js/app.js": "console.log('ok');",
    "blog/index.html": "<h1>Blog</h1>",
    "docs/guide.html": "<h1>Guide page</h1>",
    "docs/guide/index.html": "<h1>Guide index</h1>",
    "fonts/site.woff2": "wOF2",
    "LICENSE": "MIT",
}


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    """Create a small static site on disk."""
    root = tmp_path / "site"
    for rel_path, content in SITE_FILES.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def test_config(site_dir: Path) -> Config:
    """Create a disk-mode configuration serving site_dir."""
    return Config(
        server=ServerConfig(host="127.0.0.1", port=0, shutdown_timeout_seconds=1),
        assets=AssetsConfig(mode=AssetMode.DISK, static_dir=site_dir),
    )


@pytest.fixture(params=[AssetMode.EMBEDDED, AssetMode.DISK], ids=lambda m: m.value)
def backend(request: pytest.FixtureRequest, site_dir: Path) -> AssetBackend:
    """Both backend variants holding the same site."""
    if request.param is AssetMode.EMBEDDED:
        return EmbeddedBackend(load_bundled_assets(site_dir))
    return DiskBackend(site_dir)
