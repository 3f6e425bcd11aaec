"""aiohttp server for Siteserve.

Application factory and route registration for standalone server mode.
"""

import asyncio
import logging

from aiohttp import web

from siteserve.api.static import create_static_routes
from siteserve.api.stats import create_stats_routes
from siteserve.app_keys import backend_key, memory_probe_key
from siteserve.config import Config
from siteserve.core.backend import AssetBackend, create_backend
from siteserve.core.stats import MemoryProbe
from siteserve.lifecycle import ServerLifecycle
from siteserve.middleware import security_headers_middleware

logger = logging.getLogger(__name__)


def create_app(
    config: Config,
    *,
    backend: AssetBackend | None = None,
    memory_probe: MemoryProbe | None = None,
) -> web.Application:
    """Create aiohttp application.

    Args:
        config: Application configuration
        backend: Asset backend to serve from (default: built from config)
        memory_probe: Memory statistics source for /stats

    Returns:
        Configured aiohttp application
    """
    app = web.Application(middlewares=[security_headers_middleware])

    if backend is None:
        backend = create_backend(config.assets.mode, config.assets.static_dir)
    app[backend_key] = backend
    app[memory_probe_key] = memory_probe if memory_probe is not None else MemoryProbe()

    # Diagnostic routes first, the static catch-all must be last
    app.router.add_routes(create_stats_routes())
    app.router.add_routes(create_static_routes())

    return app


def create_lifecycle(config: Config, app: web.Application) -> ServerLifecycle:
    """Wrap an application in a lifecycle bound to the configured address."""
    return ServerLifecycle(
        app,
        config.server.host,
        config.server.port,
        shutdown_timeout=config.server.shutdown_timeout_seconds,
    )


def run_server(config: Config) -> None:
    """Run the server until a termination signal stops it.

    Args:
        config: Application configuration

    Raises:
        ServerError: On bind failure, serve loop failure or shutdown timeout
    """
    app = create_app(config)
    logger.info(
        f"Starting siteserve on {config.server.host}:{config.server.port} "
        f"(assets={config.assets.mode}, static_dir={config.assets.static_dir}, "
        f"shutdown_timeout={config.server.shutdown_timeout_seconds}s)",
    )
    asyncio.run(create_lifecycle(config, app).run())
