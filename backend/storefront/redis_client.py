# storefront/redis_client.py
import logging
from functools import lru_cache

import redis

from .config import REDIS_URL

logger = logging.getLogger("storefront.redis")


@lru_cache(maxsize=1)
def get_redis():
    """Shared client, or None when REDIS_URL is not configured."""
    if not REDIS_URL:
        logger.warning("REDIS_URL is not configured; settings cache and admin sessions disabled")
        return None
    return redis.Redis.from_url(REDIS_URL, decode_responses=True)
