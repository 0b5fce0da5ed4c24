"""
Tutoria Analytics Backend
=========================
FastAPI application entry point.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app

from backend import __version__
from backend.api import api_router
from backend.config import settings
from backend.database import close_db, init_db


def configure_logging() -> None:
    """Route structlog through stdlib logging at the configured level."""
    logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if settings.log_format == "json"
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(
        "Starting Tutoria Analytics",
        env=settings.app_env,
        pricing_source=settings.pricing_source,
        fetch_concurrency=settings.fetch_concurrency,
    )
    await init_db()
    logger.info("Read store connected")

    yield

    logger.info("Shutting down Tutoria Analytics")
    await close_db()


app = FastAPI(
    title="Tutoria Analytics API",
    description="Usage, cost and engagement analytics over the tutoring chat log",
    version=__version__,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
    lifespan=lifespan,
)

# Dashboards are served from other origins in development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if not settings.is_production else [],
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

if settings.metrics_enabled:
    app.mount("/metrics", make_asgi_app())

app.include_router(api_router)


def run() -> None:
    """Run the application with uvicorn."""
    import uvicorn

    uvicorn.run(
        "backend.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
