"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic. Used by main.py; no business
logic here, only wiring of infrastructure (logging, cache, schema, engine).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from platform_core.core.config import get_settings
from platform_core.infrastructure.persistence.database import dispose_engine, init_models

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: Redis cache (if enabled), database schema.
    Shutdown order: cache disconnect, SQL engine dispose.
    """
    settings = get_settings()

    # ---- Startup ----
    if settings.redis_enabled:
        from platform_core.infrastructure.cache.redis_cache import CacheService

        cache = CacheService()
        await cache.connect()
        app.state.cache = cache
    else:
        app.state.cache = None
        logger.info("Redis disabled; entity and access caches are off")

    await init_models()

    yield

    # ---- Shutdown ----
    if getattr(app.state, "cache", None) is not None:
        await app.state.cache.disconnect()
        app.state.cache = None
        logger.info("Cache disconnected")

    await dispose_engine()
    logger.info("Database engine disposed")
