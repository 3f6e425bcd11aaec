"""Static site routes.

Serves GET and HEAD for "/" and every nested path from the configured asset
backend. Misses fall back to the site's 404.html for browsers and to a JSON
error for everything else.
"""

from aiohttp import hdrs, web
from multidict import CIMultiDictProxy

from siteserve.app_keys import backend_key
from siteserve.core.backend import AssetPayload

_HTML_TYPES = ("text/html", "application/xhtml+xml")
_NOT_FOUND_BODY = b'{"error":"not_found"}'


def create_static_routes() -> list[web.RouteDef]:
    # aiohttp answers HEAD itself for GET routes; explicit HEAD routes keep
    # the handler in charge of the empty body
    return [
        web.get("/", get_root, allow_head=False),
        web.head("/", head_root),
        web.get("/{path:.+}", get_asset, allow_head=False),
        web.head("/{path:.+}", head_asset),
    ]


async def get_root(request: web.Request) -> web.Response:
    return await static_response(request, "", head_only=False)


async def head_root(request: web.Request) -> web.Response:
    return await static_response(request, "", head_only=True)


async def get_asset(request: web.Request) -> web.Response:
    return await static_response(request, request.match_info["path"], head_only=False)


async def head_asset(request: web.Request) -> web.Response:
    return await static_response(request, request.match_info["path"], head_only=True)


async def static_response(
    request: web.Request,
    path: str,
    *,
    head_only: bool,
) -> web.Response:
    """Build the response for a static asset request.

    Args:
        request: Incoming request (for the app backend and Accept header)
        path: Matched path without the leading slash ("" for the root)
        head_only: Omit the body (HEAD request)

    Returns:
        200 with the asset, 404 with the site's 404.html for HTML clients,
        or 404 with a JSON error body
    """
    backend = request.app[backend_key]

    payload = await backend.resolve(f"/{path}")
    if payload is not None:
        return asset_response(200, payload, head_only=head_only)

    if prefers_html(request.headers):
        not_found = await backend.load_not_found_page()
        if not_found is not None:
            return asset_response(404, not_found, head_only=head_only)

    return json_not_found_response(head_only=head_only)


def prefers_html(headers: CIMultiDictProxy[str]) -> bool:
    """Check whether the client's Accept header asks for HTML."""
    accept = headers.get(hdrs.ACCEPT, "").lower()
    return any(media_type in accept for media_type in _HTML_TYPES)


def asset_response(
    status: int,
    payload: AssetPayload,
    *,
    head_only: bool,
) -> web.Response:
    headers = {
        hdrs.CONTENT_TYPE: payload.content_type,
        hdrs.CONTENT_LENGTH: str(len(payload.body)),
    }
    if payload.cache_control is not None:
        headers[hdrs.CACHE_CONTROL] = payload.cache_control
    return _bytes_response(status, headers, b"" if head_only else payload.body)


def json_not_found_response(*, head_only: bool) -> web.Response:
    headers = {
        hdrs.CONTENT_TYPE: "application/json",
        hdrs.CONTENT_LENGTH: str(len(_NOT_FOUND_BODY)),
    }
    return _bytes_response(404, headers, b"" if head_only else _NOT_FOUND_BODY)


def _bytes_response(status: int, headers: dict[str, str], body: bytes) -> web.Response:
    # Content-Length is set explicitly so HEAD reports the full asset size
    return web.Response(status=status, headers=headers, body=body)
