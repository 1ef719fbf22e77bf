"""
Redis cache utility for the lesson catalogue
"""
import redis
import json
import logging
from typing import Optional, Any
from nokhba.config import settings

logger = logging.getLogger(__name__)

CATALOGUE_PREFIX = "lessons"


class CacheService:
    """Redis-based caching service; every operation fails soft"""

    def __init__(self, url: str = None):
        try:
            self.redis_client = redis.from_url(
                url or settings.REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=5
            )
            # Test connection
            self.redis_client.ping()
            logger.info("Redis connection established")
        except Exception as e:
            logger.warning(f"Redis connection failed: {str(e)}. Caching disabled.")
            self.redis_client = None

    def catalogue_key(self, grade: Optional[str], study_type: Optional[str]) -> str:
        """
        Cache key for a catalogue slice

        Students without both classifiers see the whole catalogue ("all").
        """
        if not grade or not study_type:
            return f"{CATALOGUE_PREFIX}:all"
        return f"{CATALOGUE_PREFIX}:{grade}:{study_type}"

    def get(self, key: str) -> Optional[Any]:
        if not self.redis_client:
            return None

        try:
            value = self.redis_client.get(key)
            if value:
                logger.info(f"Cache hit: {key}")
                return json.loads(value)
            logger.info(f"Cache miss: {key}")
            return None
        except Exception as e:
            logger.error(f"Cache get error: {str(e)}")
            return None

    def set(self, key: str, value: Any, ttl: int = None) -> bool:
        """
        Set value in cache

        Args:
            key: Cache key
            value: Value to cache (must be JSON serializable)
            ttl: Time to live in seconds (default from settings)
        """
        if not self.redis_client:
            return False

        try:
            ttl = ttl or settings.LESSON_CACHE_TTL
            self.redis_client.setex(key, ttl, json.dumps(value, ensure_ascii=False))
            logger.info(f"Cache set: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"Cache set error: {str(e)}")
            return False

    def clear_catalogue(self) -> bool:
        """Drop every cached catalogue slice, called when lessons change"""
        if not self.redis_client:
            return False

        try:
            keys = list(self.redis_client.scan_iter(match=f"{CATALOGUE_PREFIX}:*"))
            if keys:
                self.redis_client.delete(*keys)
                logger.info(f"Cleared {len(keys)} catalogue cache entries")
            return True
        except Exception as e:
            logger.error(f"Cache clear error: {str(e)}")
            return False


# Global instance
cache_service = CacheService()
