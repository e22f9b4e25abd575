"""
FastAPI Application

Main entry point for the Sales Engine API.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
import structlog

from sales_engine.config import get_settings
from sales_engine.config.logging import configure_logging
from sales_engine.engine import SalesEngine
from sales_engine.exceptions import EmptyDatasetError, SalesEngineError
from sales_engine.serving.api.middleware import RequestLoggingMiddleware
from sales_engine.serving.api.routes import analytics_router, health_router

logger = structlog.get_logger(__name__)


def create_app(engine: Optional[SalesEngine] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        engine: Preloaded engine; when omitted the engine is built from the
            configured data sources on startup.

    Returns:
        Configured FastAPI app instance
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        configure_logging(settings)

        logger.info("Starting Sales Engine API", environment=settings.app_env)

        if engine is not None:
            app.state.engine = engine
        else:
            app.state.engine = SalesEngine.from_settings(settings)
        logger.info("Sales data ready", rows=app.state.engine.row_counts())

        yield

        logger.info("Shutting down Sales Engine API")

    app = FastAPI(
        title="Sales Engine API",
        description="Merchant, item, invoice and customer analytics",
        version=settings.version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)

    @app.exception_handler(EmptyDatasetError)
    async def empty_dataset_handler(request: Request, exc: EmptyDatasetError) -> JSONResponse:
        logger.warning("Insufficient data", statistic=exc.statistic, count=exc.count, path=request.url.path)
        return JSONResponse(
            status_code=422,
            content={"detail": "insufficient data", "statistic": exc.statistic, "count": exc.count},
        )

    @app.exception_handler(SalesEngineError)
    async def sales_engine_error_handler(request: Request, exc: SalesEngineError) -> JSONResponse:
        logger.error("Sales engine error", error=str(exc), path=request.url.path)
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(analytics_router, prefix="/api/v1/analytics", tags=["Analytics"])

    @app.get("/")
    async def root():
        return {
            "name": settings.app_name,
            "version": settings.version,
            "docs": "/docs" if settings.is_development else None,
        }

    return app


app = create_app()
