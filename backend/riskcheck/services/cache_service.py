"""
Redis caching service with graceful fallback.

If REDIS_URL is not set or Redis is unavailable, all cache operations
return None / succeed silently so the application works without Redis.
Used to avoid repeating identical narrative-generation requests.
"""

import hashlib
import json
import logging
from typing import Any, Optional

from riskcheck.settings import settings

logger = logging.getLogger(__name__)

_redis_client = None
_redis_available = False


def _init_redis():
    """Lazily initialise the Redis connection."""
    global _redis_client, _redis_available
    redis_url = settings.redis_url
    if not redis_url:
        return
    try:
        import redis
        _redis_client = redis.from_url(redis_url, decode_responses=True)
        _redis_client.ping()
        _redis_available = True
        logger.info("Redis cache connected: %s", redis_url)
    except Exception as e:
        _redis_client = None
        _redis_available = False
        logger.warning("Redis unavailable, caching disabled: %s", e)


# Initialise on module load
_init_redis()


class CacheService:
    """Simple Redis cache wrapper with JSON serialisation."""

    PREFIX_NARRATIVE = "cache:narrative"

    @staticmethod
    def get(key: str) -> Optional[Any]:
        """Retrieve a cached value. Returns None on miss or if Redis is down."""
        if not _redis_available:
            return None
        try:
            raw = _redis_client.get(key)
            if raw is None:
                return None
            return json.loads(raw)
        except Exception as e:
            logger.debug("Cache get error for %s: %s", key, e)
            return None

    @staticmethod
    def set(key: str, value: Any, ttl: int = 60) -> bool:
        """Store a value in cache with TTL (seconds). Returns True on success."""
        if not _redis_available:
            return False
        try:
            raw = json.dumps(value, ensure_ascii=False, default=str)
            _redis_client.setex(key, ttl, raw)
            return True
        except Exception as e:
            logger.debug("Cache set error for %s: %s", key, e)
            return False

    # ---------------------------------------------------------------
    # Narrative helpers
    # ---------------------------------------------------------------

    @staticmethod
    def narrative_key(prompt: str, model: str) -> str:
        digest = hashlib.sha256(f"{model}\n{prompt}".encode("utf-8")).hexdigest()
        return f"{CacheService.PREFIX_NARRATIVE}:{digest}"

    @staticmethod
    def get_narrative(prompt: str, model: str) -> Optional[dict]:
        return CacheService.get(CacheService.narrative_key(prompt, model))

    @staticmethod
    def set_narrative(prompt: str, model: str, data: dict):
        CacheService.set(CacheService.narrative_key(prompt, model), data, ttl=3600)


# Module-level singleton
cache = CacheService()
