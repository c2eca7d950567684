"""
Shared Todo Backend — Request Logging Middleware
=================================================

What:  One access log line per request on the `sharedtodo.access` logger.
How:   Measures wall time around the downstream app and logs method, path,
       status, duration, request id and client ip. Level follows the status
       class: 5xx ERROR, 4xx WARNING, everything else INFO.

Not logged: request bodies, Authorization headers, query strings.
Invitation tokens travel in the path (`/invitations/{token}`); `redact_path`
cuts them to a short prefix before any log line is written, here and in the
exception handlers.
"""

import logging
import re
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from sharedtodo.middleware.request_id import request_id_var

logger = logging.getLogger("sharedtodo.access")

SKIPPED_PATHS = {"/health"}

# Why 8: enough to correlate log lines for one invitation, far too little
# to replay the token. A JWT's first 8 chars are its fixed header anyway.
TOKEN_PREFIX_LENGTH = 8

_INVITATION_TOKEN_SEGMENT = re.compile(r"(/invitations/)([^/]+)")


def redact_path(path: str) -> str:
    """`/api/v1/invitations/eyJhbGciOi.../accept` → `/api/v1/invitations/eyJhbGci…/accept`"""
    return _INVITATION_TOKEN_SEGMENT.sub(
        lambda m: m.group(1) + m.group(2)[:TOKEN_PREFIX_LENGTH] + "…",
        path,
    )


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in SKIPPED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        rid = request_id_var.get("") or getattr(request.state, "request_id", "")
        client_ip = request.client.host if request.client else "unknown"
        status = response.status_code
        path = redact_path(request.url.path)

        logger.log(
            level_for_status(status),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
