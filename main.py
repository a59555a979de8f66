import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

from app.api.dependencies import get_settings as settings_dependency
from app.api.v1.router import api_router
from app.core.config import Settings, get_settings
from app.core.exceptions import APIException, ErrorCode, ValidationException
from app.middleware.tracing import RequestTracingMiddleware, RequestTimingMiddleware
from app.schemas.error import ErrorResponse
from app.services.mpesa import MpesaClient

VERSION = "1.0.0"

# Metrics
REQUEST_COUNT = Counter("http_requests_total", "Total HTTP requests", ["method", "endpoint", "status"])
REQUEST_DURATION = Histogram("http_request_duration_seconds", "HTTP request duration")
ERROR_COUNT = Counter("http_errors_total", "Total HTTP errors", ["error_code", "status_code"])

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("mpesa-relay")


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=LOG_FORMAT)


def _trace_id(request: Request) -> uuid.UUID:
    trace_id = getattr(request.state, "trace_id", None)
    return uuid.UUID(trace_id) if trace_id else uuid.uuid4()


def _field_path(loc) -> str:
    # ("body",) alone means the whole body is missing or unparseable
    return ".".join(str(part) for part in loc if part != "body") or "body"


def _error_response(request: Request, status_code: int, code: str, message: str, details=None) -> JSONResponse:
    ERROR_COUNT.labels(error_code=code, status_code=status_code).inc()

    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=message,
            code=code,
            details=details,
            trace_id=_trace_id(request),
            timestamp=time.time()
        ).model_dump(mode="json")
    )


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the relay application.

    ``settings`` defaults to the environment-sourced configuration, loaded when
    the application starts. ``transport`` replaces the outbound HTTP transport
    of the gateway client and exists for tests.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        resolved = settings if settings is not None else get_settings()
        configure_logging(resolved)
        app.state.settings = resolved
        app.state.mpesa_client = MpesaClient(resolved, transport=transport)
        logger.info("M-Pesa relay started in %s mode against %s", resolved.ENVIRONMENT, resolved.BASE_URL)
        yield
        # Shutdown
        logger.info("Shutting down M-Pesa relay...")

    app = FastAPI(
        title="M-Pesa Relay",
        description="Relays STK push payment requests to the Safaricom Daraja API",
        version=VERSION,
        lifespan=lifespan,
    )

    # Tracing middleware (add before other middleware)
    app.add_middleware(RequestTracingMiddleware)
    app.add_middleware(RequestTimingMiddleware)

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time
        REQUEST_DURATION.observe(process_time)
        REQUEST_COUNT.labels(method=request.method, endpoint=request.url.path, status=response.status_code).inc()

        logger.info("%s %s - %s - %.3fs", request.method, request.url.path, response.status_code, process_time)

        return response

    # Exception handlers
    @app.exception_handler(APIException)
    async def api_exception_handler(request: Request, exc: APIException):
        return _error_response(request, exc.status_code, exc.error_code.value, str(exc.detail), exc.details)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        fields = [_field_path(err["loc"]) for err in errors]
        message = "; ".join(
            f"{field}: {err['msg']}" for field, err in zip(fields, errors)
        ) or "Invalid request body"
        invalid = ValidationException(message, details={"fields": fields})
        return _error_response(request, invalid.status_code, invalid.error_code.value, message, invalid.details)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return _error_response(request, exc.status_code, ErrorCode.INTERNAL_ERROR.value, str(exc.detail))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception occurred")
        return _error_response(request, 500, ErrorCode.INTERNAL_ERROR.value, "An unexpected error occurred")

    @app.get("/health")
    async def health_check(current: Settings = Depends(settings_dependency)):
        return {
            "status": "healthy",
            "timestamp": time.time(),
            "environment": current.ENVIRONMENT,
            "version": VERSION
        }

    @app.get("/metrics")
    async def get_metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Include API router
    app.include_router(api_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=get_settings().PORT)
