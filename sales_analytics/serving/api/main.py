"""
FastAPI Application Factory

Creates and configures the report API: middleware, routers and the mapping
from report errors to responses.
"""

from typing import Any, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
import structlog

from sales_analytics.analytics.errors import ReportError, ValidationError
from sales_analytics.config import get_settings
from sales_analytics.serving.api.middleware import RequestLoggingMiddleware
from sales_analytics.serving.api.routes import health_router, sales_analytics_router

logger = structlog.get_logger(__name__)

INTERNAL_ERROR_BODY = {"error": "Internal server error"}


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.warning("Report request rejected", path=request.url.path, errors=exc.errors)
    return JSONResponse(status_code=400, content={"error": "Bad request", "details": exc.errors})


async def report_error_handler(request: Request, exc: ReportError) -> JSONResponse:
    logger.error(
        "Report request failed",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return JSONResponse(status_code=500, content=INTERNAL_ERROR_BODY)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path, error_type=type(exc).__name__)
    return JSONResponse(status_code=500, content=INTERNAL_ERROR_BODY)


def create_api_app(lifespan: Optional[Callable[[FastAPI], Any]] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        lifespan: Startup/shutdown context manager; omitted in tests

    Returns:
        Configured FastAPI app instance
    """
    settings = get_settings()

    app = FastAPI(
        title="Sales Analytics API",
        description="Time-series, user, group and trend sales reports",
        version=settings.version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ReportError, report_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(health_router, tags=["Health"])
    app.include_router(sales_analytics_router, prefix="/api/sales-analytics", tags=["Sales Analytics"])

    @app.get("/api/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": "Sales Analytics API",
            "version": settings.version,
            "environment": settings.app_env,
        }

    return app
