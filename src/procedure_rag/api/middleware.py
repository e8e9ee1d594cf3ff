"""Request middleware: request IDs, client binding and access logging."""

from __future__ import annotations

import time
from uuid import uuid4

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from procedure_rag.api.rate_limiter import client_ip
from procedure_rag.observability.logger import get_logger

logger = get_logger("middleware")


def _elapsed_ms(start: float) -> float:
    return round((time.monotonic() - start) * 1000, 2)


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Binds ``request_id`` and ``client`` into the structlog context for every request.

    For SSE responses the recorded duration covers time to headers only; the
    chat pipeline logs its own end-to-end latency.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid4())
        client = client_ip(request)
        start = time.monotonic()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, client=client)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                duration_ms=_elapsed_ms(start),
            )
            raise

        duration_ms = _elapsed_ms(start)
        streaming = response.headers.get("content-type", "").startswith("text/event-stream")
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Duration-MS"] = str(duration_ms)
        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=duration_ms,
            streaming=streaming,
        )
        return response
