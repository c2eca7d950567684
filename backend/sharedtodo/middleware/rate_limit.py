"""
Shared Todo Backend — Rate Limiting Middleware
===============================================

What:  Per-IP sliding window rate limiter for the API.
How:   Keeps a deque of request timestamps per client IP. On each request
       under the API prefix, timestamps older than the window are dropped;
       if the remaining count reaches the limit the request is rejected with
       429 RATE_LIMIT_EXCEEDED and a Retry-After header.

    Only paths under /api/ are counted: health checks and the OpenAPI docs
    always get through.

Limits come from settings (RATE_LIMIT_REQUESTS per RATE_LIMIT_WINDOW
seconds) unless passed explicitly; RATE_LIMIT_ENABLED=false turns the
middleware into a pass-through.

State is per process. Multiple workers each enforce their own window.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from sharedtodo.config import settings
from sharedtodo.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)

LIMITED_PATH_PREFIX = "/api/"

# Full sweep of idle IPs every N recorded requests
CLEANUP_EVERY = 1000


class SlidingWindowLimiter:
    """
    The counting half of the middleware, usable without HTTP.

    `hit(key)` records a request and returns None, or returns the number of
    seconds to wait when the key is over its limit (nothing is recorded).
    """

    def __init__(self, max_requests: int, window_seconds: int, clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._recorded = 0

    def hit(self, key: str) -> Optional[int]:
        now = self._clock()
        window_start = now - self.window_seconds
        hits = self._hits[key]
        while hits and hits[0] <= window_start:
            hits.popleft()

        if len(hits) >= self.max_requests:
            return max(1, int(hits[0] + self.window_seconds - now) + 1)

        hits.append(now)
        self._recorded += 1
        if self._recorded % CLEANUP_EVERY == 0:
            self._cleanup(window_start)
        return None

    def _cleanup(self, window_start: float) -> None:
        idle = [key for key, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for key in idle:
            del self._hits[key]
        if idle:
            logger.debug("Dropped %d idle rate limit entries", len(idle))


class RateLimitMiddleware(BaseHTTPMiddleware):

    def __init__(
        self,
        app,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
        enabled: Optional[bool] = None,
    ):
        super().__init__(app)
        self.enabled = settings.rate_limit_enabled if enabled is None else enabled
        self.limiter = SlidingWindowLimiter(
            max_requests or settings.rate_limit_requests,
            window_seconds or settings.rate_limit_window,
        )

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not self.enabled or not request.url.path.startswith(LIMITED_PATH_PREFIX):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        retry_after = self.limiter.hit(client_ip)
        if retry_after is None:
            return await call_next(request)

        logger.warning(
            "Rate limit exceeded for IP %s: %d requests in %ds window",
            client_ip,
            self.limiter.max_requests,
            self.limiter.window_seconds,
        )
        # Raised exceptions do not reach the app's handlers from middleware
        error = RateLimitExceededError(retry_after=retry_after)
        return JSONResponse(
            status_code=error.status_code,
            content={
                "success": False,
                "error": {"code": error.code, "message": error.message},
            },
            headers={"Retry-After": str(retry_after)},
        )
