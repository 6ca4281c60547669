# lead_intake/middleware/request_id.py
from __future__ import annotations

import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from lead_intake.core.logging import get_structlog_logger, set_request_id

logger = get_structlog_logger(__name__)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a request ID into the structlog context and echo it back."""

    async def dispatch(self, request: Request, call_next):
        request_id = self._get_or_create_request_id(request)
        set_request_id(request_id)

        start_time = time.time()
        response = await call_next(request)
        response_time = time.time() - start_time

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{response_time:.3f}"

        if request.url.path not in ("/health", "/metrics"):
            logger.info(
                "request.completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                response_time_ms=round(response_time * 1000, 2),
            )
        return response

    def _get_or_create_request_id(self, request: Request) -> str:
        request_id = request.headers.get("X-Request-ID") or request.headers.get("X-Correlation-ID")
        if request_id:
            return request_id[:128]
        return str(uuid.uuid4())
