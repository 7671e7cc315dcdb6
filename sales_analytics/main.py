"""
FastAPI Application

Main entry point for the Sales Analytics API.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
import structlog

from sales_analytics.config import get_settings
from sales_analytics.database.connection import init_database, close_database
from sales_analytics.serving.api import create_api_app

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    from sales_analytics.config.logging import configure_logging
    configure_logging()

    settings = get_settings()
    logger.info("Starting Sales Analytics API", environment=settings.app_env)

    try:
        await init_database()
        if settings.seed_on_startup:
            from sales_analytics.ingestion.seed_db import seed_database
            await seed_database()
    except Exception as e:
        logger.error("Startup failed", error=str(e), error_type=type(e).__name__)
        await close_database()
        raise

    yield

    logger.info("Shutting down...")
    await close_database()


app = create_api_app(lifespan=lifespan)


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
