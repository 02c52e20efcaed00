"""
Request Logging Middleware for FastAPI.

Logs every request with its status and duration, tags it with a request ID
and flags slow requests. The request ID is taken from the ``X-Request-ID``
header when the client sends one and generated otherwise; it is echoed in
the response and available to exception handlers as
``request.state.request_id``.
"""

import time
import uuid
from typing import Callable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from waybill_ledger.core.logging_config import get_logger
from waybill_ledger.core.monitoring import log_api_request
from waybill_ledger.server.core.config import settings

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging and timing API requests."""

    def __init__(self, app: ASGIApp, slow_request_ms: Optional[float] = None) -> None:
        super().__init__(app)
        self.slow_request_ms = slow_request_ms if slow_request_ms is not None else settings.slow_request_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process the request and log metrics.

        Args:
            request: The incoming HTTP request
            call_next: The next middleware/handler

        Returns:
            The HTTP response
        """
        start_time = time.time()
        method = request.method
        path = request.url.path
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"API request failed: {method} {path}",
                exc_info=True,
                extra={
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "duration_ms": duration_ms,
                    "error": str(e),
                },
            )
            log_api_request(method=method, path=path, status_code=500, duration_ms=duration_ms, request_id=request_id)
            raise

        duration_ms = (time.time() - start_time) * 1000
        response.headers["X-Process-Time"] = f"{duration_ms:.2f}"
        response.headers[REQUEST_ID_HEADER] = request_id
        log_api_request(
            method=method,
            path=path,
            status_code=response.status_code,
            duration_ms=duration_ms,
            request_id=request_id,
        )

        logger.info(
            f"{method} {path} -> {response.status_code} ({duration_ms:.2f}ms)",
            extra={"request_id": request_id, "status_code": response.status_code},
        )
        if duration_ms > self.slow_request_ms:
            logger.warning(
                f"Slow API request: {method} {path} took {duration_ms:.2f}ms",
                extra={
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "duration_ms": duration_ms,
                    "status_code": response.status_code,
                },
            )
        return response
