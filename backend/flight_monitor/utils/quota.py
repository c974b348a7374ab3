"""
Contatore Redis delle chiamate verso l'API Amadeus.

Il free tier ha una quota mensile: ogni ricerca incrementa la chiave
"amadeus:monthly" e /health mostra il saldo residuo. Il contatore è solo
informativo: non blocca mai una chiamata.

Note:
- Il TTL viene impostato solo alla prima chiamata nella finestra (incr → 1).
- Un errore Redis non deve fermare il monitoraggio: viene loggato e basta.
"""
import logging

from redis.exceptions import RedisError

from flight_monitor.db.redis import get_redis

logger = logging.getLogger(__name__)

AMADEUS_USAGE_KEY = "amadeus:monthly"

# Finestra mensile in secondi (30 giorni)
MONTHLY_WINDOW: int = 30 * 24 * 3600


async def record_call(key: str = AMADEUS_USAGE_KEY, window_seconds: int = MONTHLY_WINDOW) -> None:
    """Incrementa il contatore per la chiave data."""
    try:
        redis = await get_redis()
        count = await redis.incr(key)
        if count == 1:
            await redis.expire(key, window_seconds)
    except RedisError as exc:
        logger.warning("Contatore %s non aggiornato: %s", key, exc)


async def get_remaining(key: str, max_calls: int) -> int:
    """Restituisce il numero di chiamate rimanenti per la chiave."""
    redis = await get_redis()
    count = int(await redis.get(key) or 0)
    return max(0, max_calls - count)
