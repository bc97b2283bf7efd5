"""
NoteSafe Backend — Request Logging Middleware
===============================================

What:  One access log line per HTTP request, plus an audit line for every
       account deletion attempt.
Why:   Account deletions are destructive; every one of them should be visible
       in the logs with its target and outcome, even when the client never
       reads the response.
How:   The request ID is not formatted in here: RequestIDFilter stamps it on
       every record, so these lines correlate with the cascade's own logs.

What we log vs what we DON'T log (privacy):
    ✅ Log: method, path, status, duration, IP, target user id
    ❌ Don't log: request bodies, auth headers
"""

import logging
import re
import time
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("notesafe.access")
audit_logger = logging.getLogger("notesafe.audit")

_ACCOUNT_PATH = re.compile(r"^/api/users/(?P<user_id>[^/]+)$")

# Status → audit outcome of a DELETE /api/users/{id}
_OUTCOMES = {200: "deleted", 404: "not_found", 409: "conflict"}


def _deleted_account(request: Request) -> Optional[str]:
    if request.method != "DELETE":
        return None
    match = _ACCOUNT_PATH.match(request.url.path)
    return match.group("user_id") if match else None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Access line level follows the status: 5xx → ERROR, 4xx → WARNING,
    everything else → INFO. Health probes are skipped (too noisy).
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path == "/health":
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            level = logging.ERROR
        elif status >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        client_ip = request.client.host if request.client else "unknown"
        logger.log(
            level,
            "%s %s %d %.1fms from %s",
            request.method, path, status, duration_ms, client_ip,
        )

        user_id = _deleted_account(request)
        if user_id is not None:
            audit_logger.info(
                "Account deletion user=%s outcome=%s",
                user_id, _OUTCOMES.get(status, "failed"),
            )

        return response
