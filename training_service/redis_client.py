from __future__ import annotations

import structlog
from redis.asyncio import Redis

from .config import get_settings

logger = structlog.get_logger(__name__)

redis_client: Redis | None = None

PROGRAM_TREE_TTL_SECONDS = 15 * 60


def program_tree_key(program_id: int) -> str:
    return f"training:program_tree:{program_id}"


async def init_redis() -> None:
    global redis_client

    settings = get_settings()
    if not settings.TRAINING_REDIS_ENABLED:
        logger.info("redis_disabled")
        return
    try:
        redis_client = Redis(
            host=settings.TRAINING_REDIS_HOST,
            port=settings.TRAINING_REDIS_PORT,
            db=settings.TRAINING_REDIS_DB,
            password=settings.TRAINING_REDIS_PASSWORD,
            encoding="utf-8",
            decode_responses=True,
            health_check_interval=30,
        )
        await redis_client.ping()
        logger.info(
            "redis_connection_established",
            host=settings.TRAINING_REDIS_HOST,
            port=settings.TRAINING_REDIS_PORT,
            db=settings.TRAINING_REDIS_DB,
        )
    except Exception:
        logger.error("redis_connection_failed", exc_info=True)
        redis_client = None


async def get_redis() -> Redis | None:
    return redis_client


async def close_redis() -> None:
    global redis_client

    if redis_client is None:
        return

    try:
        await redis_client.aclose()
        logger.info("redis_connection_closed")
    except Exception:
        logger.warning("redis_close_failed", exc_info=True)
    finally:
        redis_client = None

