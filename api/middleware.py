"""Request context middleware using ContextVar.

Assigns every request an id (taken from the X-Request-ID header when the
client sends one), stores it in a ContextVar so log records anywhere in
the request can carry it, echoes it back in the response and writes one
access log line per request.

Written as plain ASGI middleware so every message the app sends,
including template debug info used by the test client, passes through
untouched.
"""

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger("catalog.access")

# ---------------------------------------------------------------------------
# Current request id
# ---------------------------------------------------------------------------

_current_request_id: ContextVar[str] = ContextVar("current_request_id", default="-")


def get_request_id() -> str:
    """Return the id of the request being handled, or "-" outside one."""
    return _current_request_id.get()


class RequestIdFilter(logging.Filter):
    """Attach ``request_id`` to every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

class RequestContextMiddleware:
    """Bind a request id for the duration of the request and log the outcome."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers") or [])
        request_id = headers.get(b"x-request-id", b"").decode("latin-1") or uuid.uuid4().hex[:12]
        token = _current_request_id.set(request_id)
        started = time.perf_counter()
        status = 500

        async def send_wrapper(message: Message) -> None:
            nonlocal status
            if message["type"] == "http.response.start":
                status = message["status"]
                MutableHeaders(scope=message)["X-Request-ID"] = request_id
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                "request method=%s path=%s status=%s ms=%.1f",
                scope["method"], scope["path"], status, elapsed_ms,
            )
            _current_request_id.reset(token)
