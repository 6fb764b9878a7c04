"""
FastAPI application entry point for the MSKU resolver.

Run with:
    uvicorn msku_resolver.webapp.main:app --reload

Open: http://127.0.0.1:8000/docs
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from msku_resolver.exceptions import AppException
from msku_resolver.services.resolution_service import ResolutionService
from msku_resolver.utils.config_loader import AppConfig, load_config, load_env
from msku_resolver.utils.logging_config import setup_logging
from msku_resolver.webapp.routes import router

logger = logging.getLogger(__name__)


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Application configuration. Loaded from config/config.yaml
            (and .env) when not provided.

    Returns:
        FastAPI: Configured application with a seeded resolution service.
    """
    if config is None:
        load_env()
        config = load_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler for startup/shutdown."""
        setup_logging(
            level=config.logging.level,
            log_format=config.logging.format,
            log_file=config.logging.file,
        )
        stats = app.state.resolution_service.get_stats()
        logger.info(
            f"MSKU Resolver starting with {stats['total_mappings']} mappings "
            f"and {stats['total_patterns']} patterns"
        )
        yield
        logger.info("MSKU Resolver shutting down...")

    app = FastAPI(
        title=config.web.title,
        description="SKU to master SKU resolution with exact and pattern matching",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.resolution_service = ResolutionService.from_config(config)

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        """Render application errors as JSON with their status code."""
        logger.warning(f"{exc.error_code} on {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, **exc.to_dict()},
        )

    @app.middleware("http")
    async def error_handling_middleware(request: Request, call_next):
        """Global error handling middleware."""
        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.exception(f"Unhandled error processing {request.url.path}: {e}")
            return JSONResponse(
                status_code=500,
                content={
                    "success": False,
                    "error": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "path": str(request.url.path),
                },
                headers={"X-Process-Time": str(process_time)},
            )
        response.headers["X-Process-Time"] = str(time.time() - start_time)
        return response

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("msku_resolver.webapp.main:app", host=app.state.config.web.host, port=app.state.config.web.port, reload=True)
