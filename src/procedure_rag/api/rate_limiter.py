"""In-memory sliding window rate limiter keyed by client IP."""

from __future__ import annotations

import time
from collections import defaultdict

from fastapi import HTTPException, Request, status

from procedure_rag.observability.logger import get_logger

logger = get_logger("rate_limiter")


class SlidingWindowRateLimiter:
    """Simple in-memory sliding window rate limiter.

    Tracks request timestamps per key within a fixed window.
    """

    def __init__(self, clock=time.monotonic) -> None:
        self._requests: dict[str, list[float]] = defaultdict(list)
        self._clock = clock

    def check(self, key: str, max_requests: int, window_seconds: int = 60) -> bool:
        """Return True if request is allowed, False if rate-limited."""
        now = self._clock()
        cutoff = now - window_seconds

        # Prune old entries
        self._requests[key] = [t for t in self._requests[key] if t > cutoff]

        if len(self._requests[key]) >= max_requests:
            return False

        self._requests[key].append(now)
        return True


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def rate_limit(request: Request) -> str:
    """FastAPI dependency: enforce the per-IP request budget. Returns the client key."""
    settings = request.app.state.settings
    limiter: SlidingWindowRateLimiter = request.app.state.rate_limiter
    key = client_ip(request)

    if not limiter.check(key, settings.rate_limit_requests_per_minute):
        logger.warning("rate_limited", key=key, path=request.url.path)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests. Please try again later.",
            headers={"Retry-After": "60"},
        )

    return key
