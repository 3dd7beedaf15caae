from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")

HEADER = "X-Request-ID"


class CorrelationIdMiddleware:
    """Bind a request id to HTTP requests and WebSocket connections.

    The id comes from the ``X-Request-ID`` header when present and is echoed
    back on HTTP responses. Each HTTP request is logged with its status and
    duration once the response has started.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        cid = Headers(scope=scope).get(HEADER) or uuid.uuid4().hex
        token = correlation_id_ctx.set(cid)
        start = time.perf_counter()

        async def _send(message: Message) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message)[HEADER] = cid
                logger.info(
                    "%s %s %s %.1fms",
                    scope["method"],
                    scope["path"],
                    message["status"],
                    (time.perf_counter() - start) * 1000,
                )
            await send(message)

        try:
            await self.app(scope, receive, _send)
        finally:
            correlation_id_ctx.reset(token)
