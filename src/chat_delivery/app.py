from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from chat_delivery.api.v1.routers import deliveries, health
from chat_delivery.application.exceptions import StoreError
from chat_delivery.config import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    app.state.redis = aioredis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
    )
    logger.info("Redis connection pool created")

    yield

    await app.state.redis.aclose()
    logger.info("Redis connection pool closed")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Chat Scheduled Delivery",
        version="0.1.0",
        lifespan=lifespan,
    )

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(deliveries.router)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StoreError)
    async def _store_unavailable(_req: Request, exc: StoreError) -> JSONResponse:
        logger.error("Delivery pass failed: %s", exc.detail)
        return JSONResponse(status_code=503, content={"detail": exc.detail})
