"""Application keys for type-safe app configuration access."""

from aiohttp import web

from siteserve.core.backend import AssetBackend
from siteserve.core.stats import MemoryProbe

backend_key = web.AppKey("backend", AssetBackend)
memory_probe_key = web.AppKey("memory_probe", MemoryProbe)
