"""
FastAPI application with assembled routers.

Initializes FastAPI app with all API routers and configures uvicorn server.

Dependencies: fastapi, flowchart_ai.api.routers, uvicorn
System role: API entry point with router assembly and server launch
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from flowchart_ai import __version__
from flowchart_ai.api.deps.dependencies import get_service_cache
from flowchart_ai.api.routers.router_utils import error_response
from flowchart_ai.boundary.db import get_async_engine
from flowchart_ai.configs import get_settings
from flowchart_ai.core.exceptions import ConfigurationError
from flowchart_ai.observability import configure_logging
from flowchart_ai.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware

from .routers import (
    canvas_router,
    chat_router,
    health_router,
    usage_router,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Pre-warms the chat model client when a credential is configured; without
    one the server still starts and chat requests answer 500.
    """
    cache = get_service_cache()
    try:
        _ = cache.orchestrator
        logger.info(f"{__name__}:lifespan - Service cache pre-warmed")
    except ConfigurationError as e:
        logger.warning(f"{__name__}:lifespan - Chat model unavailable: {e.message}")

    yield

    cache.clear()
    await get_async_engine().dispose()
    logger.info(f"{__name__}:lifespan - Service cache cleared")


async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error(
        f"{__name__}:configuration_error_handler - {exc.message}",
        extra={"path": request.url.path, **exc.details},
    )
    return error_response(500, exc.message)


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="FlowChart AI API",
        description="Conversational flowchart assistant with canvas synthesis and usage quotas",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Added last so it runs first and the ID is bound for request logging
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    app.add_exception_handler(ConfigurationError, configuration_error_handler)

    # Register all routers with /api/v1 prefix for versioning
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(chat_router, prefix="/api/v1")
    app.include_router(usage_router, prefix="/api/v1")
    app.include_router(canvas_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "flowchart_ai.api.main:app",
        host="0.0.0.0",
        port=8000,
    )
