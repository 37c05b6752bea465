"""Ask John - FastAPI Application Entry Point.

ACA health insurance assistant answering from a markdown knowledge base,
with web search for current figures.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from askjohn import __version__
from askjohn.api.middleware.request_id import RequestIDMiddleware
from askjohn.api.routes import ask, health
from askjohn.assistant.ask_john import get_assistant, set_assistant
from askjohn.config.settings import get_settings
from askjohn.knowledge.base import get_knowledge_base
from askjohn.observability.logging import get_logger, init_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Indexes the knowledge base at startup and releases clients on shutdown.
    """
    settings = get_settings()

    # Initialize structured logging
    init_logging(
        json_format=settings.environment == "production",
        level=settings.log_level,
    )
    logger.info(
        "askjohn_starting",
        version=__version__,
        environment=settings.environment,
        port=settings.api_port,
    )

    try:
        kb = get_knowledge_base()

        if settings.index_on_startup:
            report = await kb.initialize()
            logger.info("knowledge_base_initialized", **report.to_dict())

        health.set_component_health("knowledge_base", kb.is_ready)
        health.set_component_health("llm", bool(settings.openai_api_key))
        health.set_component_health("web_search", bool(settings.perplexity_api_key))

        # Mark service as ready
        health.set_ready(True)
        logger.info("askjohn_ready", components=health.get_component_health())

    except Exception as e:
        logger.error("askjohn_startup_failed", error=str(e))
        raise

    yield  # Application runs here

    # Shutdown: Cleanup components
    logger.info("askjohn_shutting_down")
    health.set_ready(False)

    await get_assistant().close()
    set_assistant(None)
    await get_knowledge_base().close()

    logger.info("askjohn_shutdown_complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Ask John",
        description="ACA health insurance assistant with knowledge-base retrieval",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.environment != "production" else None,
        redoc_url="/redoc" if settings.environment != "production" else None,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.environment == "development" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(RequestIDMiddleware)

    # Include routers
    app.include_router(health.router)
    app.include_router(ask.router)

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    log_level = settings.log_level.lower()

    # Configure root logger
    logging.basicConfig(
        format="%(message)s",
        level=logging.WARNING if settings.log_level == "WARN" else getattr(logging, settings.log_level),
    )

    uvicorn.run(
        "askjohn.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level="warning" if log_level == "warn" else log_level,
        reload=settings.environment == "development",
    )
