"""
FastAPI application factory.
"""

import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from feedback_sync import __version__
from feedback_sync.api.dependencies import (
    ServiceContainer,
    build_container,
    close_container,
)
from feedback_sync.api.middleware.timeout import TimeoutMiddleware
from feedback_sync.api.routes import feedback, health, reports
from feedback_sync.config.settings import get_settings
from feedback_sync.errors import ErrorKind, FeedbackSyncError
from feedback_sync.observability.logging import bind_context, clear_context
from feedback_sync.observability.tracing import get_tracer, is_tracing_enabled

logger = structlog.get_logger(__name__)

ERROR_STATUS = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.PERSISTENCE: 503,
    ErrorKind.NOTIFICATION: 502,
}


def _validation_detail(exc: RequestValidationError) -> str:
    """Flatten pydantic errors into one readable line."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        container: Pre-built services. When omitted, the lifespan handler
            builds them from settings and closes them on shutdown.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Feedback API starting up")

        if settings.tracing_enabled and not is_tracing_enabled():
            from feedback_sync.observability.tracing import setup_tracing

            setup_tracing(
                service_name=settings.otel_service_name,
                otlp_endpoint=settings.otel_exporter_otlp_endpoint,
            )

        owns_container = container is None
        app.state.container = container or await build_container(settings)

        yield

        logger.info("Feedback API shutting down")
        if owns_container:
            await close_container(app.state.container)

    openapi_tags = [
        {"name": "health", "description": "Service health checks"},
        {"name": "feedback", "description": "Survey feedback submission"},
        {"name": "reports", "description": "Weekly feedback reports"},
    ]

    app = FastAPI(
        title="Feedback Sync API",
        description="""
Collects survey feedback, alerts an administrator about critical scores,
and aggregates feedback into weekly reports.

## Critical feedback

Scores of 3 or less are queued for admin notification. Delivery happens
asynchronously in the `feedback-sync notify-worker` process.
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        openapi_tags=openapi_tags,
    )

    cors_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # Added before the logging middleware so the timeout wraps the whole request
    if settings.request_timeout_seconds > 0:
        app.add_middleware(
            TimeoutMiddleware,
            timeout_seconds=settings.request_timeout_seconds,
        )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = (
            request.headers.get("X-Request-ID")
            or request.headers.get("X-Correlation-ID")
            or str(uuid.uuid4())
        )
        bind_context(request_id=request_id)

        start_time = time.perf_counter()

        try:
            if is_tracing_enabled():
                tracer = get_tracer("feedback_sync.api")
                with tracer.start_as_current_span(
                    f"{request.method} {request.url.path}",
                    attributes={
                        "http.method": request.method,
                        "http.route": request.url.path,
                        "http.request_id": request_id,
                    },
                ) as span:
                    response = await call_next(request)
                    span.set_attribute("http.status_code", response.status_code)
            else:
                response = await call_next(request)
            duration = time.perf_counter() - start_time

            response.headers["X-Request-ID"] = request_id

            logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2),
            )
            return response
        finally:
            clear_context()

    @app.exception_handler(FeedbackSyncError)
    async def domain_exception_handler(request: Request, exc: FeedbackSyncError):
        status_code = ERROR_STATUS.get(exc.kind, 500)
        if status_code >= 500:
            logger.error("Request failed", error_type=exc.kind.value, error=exc.message)
        else:
            logger.info("Request rejected", error_type=exc.kind.value, error=exc.message)
        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.message, "error_type": exc.kind.value},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"detail": _validation_detail(exc), "error_type": ErrorKind.VALIDATION.value},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "error_type": "internal"},
        )

    app.include_router(health.router, tags=["health"])
    app.include_router(feedback.router, tags=["feedback"])
    app.include_router(reports.router, tags=["reports"])

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "service": "feedback-sync",
            "version": __version__,
            "docs": "/docs",
        }

    return app
