import logging
import time
import uuid
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


class RequestTracingMiddleware(BaseHTTPMiddleware):
    """Middleware for request tracing and correlation IDs."""

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.trace_header = "X-Request-ID"

    def _trace_id(self, request: Request) -> str:
        incoming = request.headers.get(self.trace_header)
        if incoming:
            try:
                return str(uuid.UUID(incoming))
            except ValueError:
                logger.debug("Ignoring non-UUID %s header: %r", self.trace_header, incoming)
        return str(uuid.uuid4())

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        trace_id = self._trace_id(request)

        # Store trace ID in request state
        request.state.trace_id = trace_id

        response = await call_next(request)
        response.headers[self.trace_header] = trace_id

        logger.debug("Request %s: %s %s", trace_id, request.method, request.url.path)

        return response


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Middleware for request timing and performance monitoring."""

    def __init__(self, app: ASGIApp, slow_request_seconds: float = 1.0):
        super().__init__(app)
        self.slow_request_seconds = slow_request_seconds

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)

        if process_time > self.slow_request_seconds:
            logger.warning(
                "Slow request detected: %s %s took %.2fs (trace_id: %s)",
                request.method, request.url.path, process_time,
                getattr(request.state, "trace_id", None),
            )

        return response
