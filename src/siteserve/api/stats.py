"""Stats API endpoint.

Reports process memory usage as JSON. The probe is injected through the
application, so tests can substitute their own.
"""

import json

from aiohttp import hdrs, web

from siteserve.app_keys import memory_probe_key


def create_stats_routes() -> list[web.RouteDef]:
    return [
        web.get("/stats", get_stats, allow_head=False),
        web.head("/stats", head_stats),
    ]


async def get_stats(request: web.Request) -> web.Response:
    return _stats_response(request, head_only=False)


async def head_stats(request: web.Request) -> web.Response:
    return _stats_response(request, head_only=True)


def _stats_response(request: web.Request, *, head_only: bool) -> web.Response:
    probe = request.app[memory_probe_key]
    body = json.dumps(probe.report(), separators=(",", ":")).encode("utf-8")
    return web.Response(
        body=b"" if head_only else body,
        headers={
            hdrs.CONTENT_TYPE: "application/json",
            hdrs.CACHE_CONTROL: "no-store",
            hdrs.CONTENT_LENGTH: str(len(body)),
        },
    )
