"""
Admin API: health, manual ingestion trigger and run ledger.

Build with create_app(); uvicorn uses it as a factory:

    uvicorn src.api.app:create_app --factory
"""

import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.api.dependencies import cleanup_dependencies
from src.api.rate_limit import SlidingWindowLimiter
from src.api.routes import admin, health
from src.config.settings import get_settings
from src.observability.tracing import (
    current_trace_id,
    get_tracer,
    setup_tracing,
    shutdown_tracing,
)

logger = structlog.get_logger(__name__)

API_TITLE = "Kentucky News Admin API"
API_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if settings.tracing_enabled:
        setup_tracing(
            service_name=f"{settings.otel_service_name}-api",
            otlp_endpoint=settings.otel_exporter_otlp_endpoint,
        )
    logger.info("Admin API started", environment=settings.environment)

    yield

    await cleanup_dependencies()
    shutdown_tracing()
    logger.info("Admin API stopped")


def create_app(limiter: SlidingWindowLimiter | None = None) -> FastAPI:
    """
    Create the admin application.

    Args:
        limiter: Manual-trigger limiter; built from settings when omitted.
            It lives on ``app.state`` so every request shares one window.
    """
    settings = get_settings()

    app = FastAPI(
        title=API_TITLE,
        description=(
            "Operational surface for the Kentucky news ingestion pipeline. "
            "`/admin` endpoints require an `X-API-KEY` header when keys are configured."
        ),
        version=API_VERSION,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "health", "description": "Database and last-run status"},
            {"name": "admin", "description": "Manual runs and the run ledger"},
        ],
    )
    app.state.limiter = limiter or SlidingWindowLimiter(
        limit=settings.manual_run_limit,
        window=settings.manual_run_window_seconds,
        max_keys=settings.rate_limit_max_clients,
    )

    tracer = get_tracer("ky-news.api")

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        structlog.contextvars.bind_contextvars(request_id=request_id)
        started = time.perf_counter()
        try:
            with tracer.start_as_current_span(
                f"{request.method} {request.url.path}",
                attributes={"http.method": request.method, "http.route": request.url.path},
            ) as span:
                response = await call_next(request)
                span.set_attribute("http.status_code", response.status_code)
                trace_id = current_trace_id()

            response.headers["X-Request-ID"] = request_id
            if trace_id:
                response.headers["X-Trace-ID"] = trace_id
            logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            return response
        finally:
            structlog.contextvars.clear_contextvars()

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.error("Unhandled API error", path=request.url.path, error=str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "error_type": "internal"},
        )

    app.include_router(health.router, tags=["health"])
    app.include_router(admin.router, tags=["admin"])

    @app.get("/", include_in_schema=False)
    async def root():
        return {"service": API_TITLE, "version": API_VERSION, "docs": "/docs"}

    return app
