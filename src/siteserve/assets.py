"""Asset discovery for the bundled site.

Locates the static site bundled into the siteserve package at build time.
"""

from importlib.resources import files
from pathlib import Path


def get_static_dir() -> Path:
    """Return path to bundled static assets.

    Returns:
        Path to the static directory shipped inside the package.

    Raises:
        FileNotFoundError: If static assets are not bundled.
    """
    static = files("siteserve").joinpath("static")
    if not static.is_dir():
        msg = (
            "Bundled static assets not found. "
            "Copy the site into src/siteserve/static and reinstall the package."
        )
        raise FileNotFoundError(msg)
    return Path(str(static))


def load_bundled_assets(static_dir: Path | None = None) -> dict[str, bytes]:
    """Read every file of a static tree into memory.

    Args:
        static_dir: Tree to load (default: the bundled static directory)

    Returns:
        Mapping of "/"-separated relative path to file contents
    """
    root = static_dir if static_dir is not None else get_static_dir()
    assets: dict[str, bytes] = {}
    for path in sorted(root.rglob("*")):
        if path.is_file():
            assets[path.relative_to(root).as_posix()] = path.read_bytes()
    return assets
