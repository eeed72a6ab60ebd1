"""Guards wrapped around API handlers."""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable

from aiohttp import web

from fcs.server.api.errors import SHUTTING_DOWN_MESSAGE, ErrorCode, api_error

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def shutdown_check_middleware(handler: Handler) -> Handler:
    """Answer 503 SHUTTING_DOWN instead of calling ``handler`` during shutdown.

    Apps created without a lifecycle never refuse requests.
    """

    @functools.wraps(handler)
    async def guarded(request: web.Request) -> web.StreamResponse:
        lifecycle = request.app.get("lifecycle")
        if lifecycle is not None and lifecycle.is_shutting_down:
            return api_error(SHUTTING_DOWN_MESSAGE, ErrorCode.SHUTTING_DOWN)
        return await handler(request)

    return guarded
