from passwordless_engine.core.querier import CoreQuerier
from passwordless_engine.core.redis import redis_client


async def check_core(querier: CoreQuerier) -> None:
    response = await querier.client.get("/hello")
    response.raise_for_status()


async def check_redis() -> None:
    await redis_client.ping()
