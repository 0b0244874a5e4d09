"""System-level routes such as health checks."""

from __future__ import annotations

import logging
from typing import Annotated

import redis.asyncio as redis
from fastapi import APIRouter, Depends
from redis import RedisError

from storefront.config import settings
from storefront.services.catalog import CatalogDependency
from storefront.services.storage.kv_store import get_redis_client

router = APIRouter(tags=["system"])
logger = logging.getLogger(__name__)


@router.get("/")
async def read_root() -> dict[str, str]:
    """Hello World endpoint used by smoke tests."""

    return {"message": "Hello World"}


@router.get("/health")
async def health_check(
    client: Annotated[redis.Redis, Depends(get_redis_client)],
    catalog: CatalogDependency,
) -> dict[str, str | int]:
    """Health check endpoint with Redis connectivity check."""

    try:
        await client.ping()
        redis_status = "connected"
    except (RedisError, OSError) as exc:
        logger.warning("Redis ping failed: %s", exc)
        redis_status = "disconnected"

    return {
        "status": "healthy",
        "redis": redis_status,
        "products": len(catalog),
        "environment": settings.ENVIRONMENT,
    }
