"""Siteserve - a small static site server.

Serves a site either from assets bundled into the package or from a
directory on disk, with pretty-URL fallbacks and graceful shutdown.
"""

__version__ = "0.1.0"
