"""
NoteSafe Backend — Request ID Middleware
==========================================

What:  Assigns a short correlation ID to each request and echoes it back.
Why:   An account deletion touches the database and then the filesystem,
       possibly after the response; the ID ties those log lines together.
How:   Reuses the client's X-Request-ID if sent, otherwise generates one and
       stores it in a ContextVar (coroutine-local). RequestIDFilter copies the
       current value onto every log record as `request_id`, so the cascade,
       store and cleanup loggers carry it without passing it around.

Background work:
    Image cleanup scheduled with BackgroundTasks runs after the response; the
    route hands it the ID explicitly and AccountService re-binds it for the
    duration of the cleanup.
"""

import logging
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Coroutine-local: concurrent requests on one thread each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDFilter(logging.Filter):
    """Stamps the active request ID onto log records ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("") or "-"
        return True


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # 8 chars is plenty for correlation and stays readable in logs
        rid = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]

        # Not reset afterwards: the outermost 500 handler still reads it
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
