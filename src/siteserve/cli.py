"""CLI interface for Siteserve.

Command-line entry point for serving a static site.
"""

import logging
import sys
from pathlib import Path
from typing import NoReturn

import click

from siteserve.config import Config, parse_asset_mode
from siteserve.core.backend import AssetMode

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@click.group(invoke_without_command=True)
@click.version_option(package_name="siteserve")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Siteserve - serve a static site from the bundle or from disk."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(serve)


@cli.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path, dir_okay=False),
    default=None,
    help="Path to configuration file (default: auto-discover siteserve.toml)",
)
@click.option(
    "--host",
    default=None,
    help="Host to bind to (overrides config)",
)
@click.option(
    "--port",
    "-p",
    type=click.IntRange(0, 65535),
    default=None,
    help="Port to bind to (overrides PORT and config)",
)
@click.option(
    "--assets",
    "asset_mode",
    type=click.Choice([mode.value for mode in AssetMode], case_sensitive=False),
    default=None,
    help="Serve bundled assets or a directory on disk (overrides config)",
)
@click.option(
    "--use-disk",
    is_flag=True,
    help="Shortcut for --assets disk",
)
@click.option(
    "--static-dir",
    "-s",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Directory served in disk mode (overrides config)",
)
@click.option(
    "--shutdown-timeout-seconds",
    type=click.IntRange(min=0),
    default=None,
    help="Grace period for in-flight requests on shutdown (overrides config)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable debug logging",
)
def serve(
    config_path: Path | None,
    host: str | None,
    port: int | None,
    asset_mode: str | None,
    use_disk: bool,
    static_dir: Path | None,
    shutdown_timeout_seconds: int | None,
    verbose: bool,
) -> None:
    """Start the static site server."""
    from siteserve.lifecycle import ServerError
    from siteserve.server import run_server

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
    )

    mode = AssetMode.DISK if use_disk else None
    if mode is None and asset_mode is not None:
        mode = parse_asset_mode(asset_mode)

    try:
        config = Config.load(config_path).with_overrides(
            host=host,
            port=port,
            shutdown_timeout_seconds=shutdown_timeout_seconds,
            asset_mode=mode,
            static_dir=static_dir,
        )
    except (FileNotFoundError, ValueError) as e:
        _fail(e)

    click.echo(f"Starting server on {config.server.host}:{config.server.port}")
    click.echo(f"Assets: {config.assets.mode}")
    if config.assets.mode is AssetMode.DISK:
        click.echo(f"Static directory: {config.assets.static_dir}")
    click.echo(f"Shutdown timeout: {config.server.shutdown_timeout_seconds}s")

    try:
        run_server(config)
    except (ServerError, FileNotFoundError) as e:
        _fail(e)


def _fail(error: Exception) -> NoReturn:
    """Report an error and exit with status 1.

    Args:
        error: Error to report
    """
    click.echo(click.style(f"Error: {error}", fg="red"), err=True)
    sys.exit(1)


if __name__ == "__main__":
    cli()
