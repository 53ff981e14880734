# core/redis.py
"""
Shared Redis connection for the session store. Connected in the app
lifespan; code running outside the app passes its own client around.
"""

import logging

import redis
import redis.asyncio as aioredis

from passwordless_engine.core.config import settings

logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "session"


def session_key(user_id: str, session_handle: str) -> str:
    return f"{SESSION_KEY_PREFIX}:{user_id}:{session_handle}"


class RedisClient:
    client: aioredis.Redis | None = None

    async def connect(self, url: str | None = None) -> None:
        url = url or str(settings.REDIS_URL)

        self.client = aioredis.from_url(
            url,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            decode_responses=True,
            socket_connect_timeout=5,
            retry_on_timeout=True,
            retry_on_error=[
                redis.exceptions.ConnectionError,
                redis.exceptions.TimeoutError,
            ],
            health_check_interval=30,
        )
        logger.info("Session store connection configured")

    async def ping(self) -> None:
        if self.client is None:
            raise RuntimeError("Redis client is not initialized")
        await self.client.ping()

    async def disconnect(self) -> None:
        if self.client:
            await self.client.aclose()
            self.client = None
            logger.info("Session store connection closed")


redis_client = RedisClient()


async def get_redis() -> aioredis.Redis:
    if redis_client.client is None:
        raise RuntimeError("Redis client is not initialized")
    return redis_client.client
