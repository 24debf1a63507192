"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from freight.api.v1.calculate import router as calculate_router
from freight.api.v1.rules import router as rules_router
from freight.config import settings
from freight.redis_client import close_redis_client

VERSION = "0.1.0"

structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.dev.ConsoleRenderer() if settings.environment == "development"
        else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        getattr(logging, settings.log_level.upper(), logging.INFO)
    ),
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    logger.info(
        "app_starting",
        environment=settings.environment,
        redis_url=settings.redis_url,
        fallback_path=settings.rules_fallback_path,
    )
    yield
    logger.info("app_shutting_down")
    await close_redis_client()


app = FastAPI(
    title="Freight Calculator API",
    description="Shipping cost rules and single/batch freight calculation",
    version=VERSION,
    lifespan=lifespan,
)

app.include_router(rules_router)
app.include_router(calculate_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Freight Calculator API",
        "version": VERSION,
        "status": "running",
    }


@app.get("/api/v1/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok", "version": VERSION}
