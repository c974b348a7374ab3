"""
Connessione Redis asincrona, usata solo dal contatore di utilizzo Amadeus
(utils/quota.py).

    redis = await get_redis()

Il client è creato alla prima richiesta e chiuso nello shutdown del lifespan.
"""
import redis.asyncio as aioredis

from flight_monitor.config import settings

_redis_client: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    global _redis_client
    if _redis_client is None:
        _redis_client = aioredis.from_url(
            settings.redis_url,
            decode_responses=True,
        )
    return _redis_client


async def close_redis() -> None:
    """Chiude il client; una get_redis() successiva ne crea uno nuovo."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
