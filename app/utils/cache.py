"""
Redis read-through cache for the published quiz catalogue
"""
import json
import logging
from typing import Any, Callable, Optional

import redis

from app.config import settings

logger = logging.getLogger(__name__)

QUIZ_KEY_PREFIX = "quizzes"


class CacheService:
    """
    JSON values under the "quizzes:" namespace

    Any Redis error degrades to a cache miss; catalogue writes drop the whole
    namespace through clear_quiz_cache().
    """

    def __init__(self, enabled: bool = True, redis_url: Optional[str] = None, default_ttl: Optional[int] = None):
        self.default_ttl = default_ttl or settings.QUIZ_CACHE_TTL
        self.redis_client = None

        if not enabled:
            logger.info("Quiz cache disabled by configuration")
            return
        self.redis_client = self._connect(redis_url or settings.REDIS_URL)

    def _connect(self, url: str) -> Optional[redis.Redis]:
        try:
            client = redis.from_url(
                url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5
            )
            client.ping()
        except redis.RedisError as e:
            logger.warning(f"Redis connection failed: {str(e)}. Quiz cache disabled.")
            return None

        logger.info("Redis connection established")
        return client

    @staticmethod
    def quiz_list_key(category_id: Optional[str], difficulty: Optional[str]) -> str:
        return f"{QUIZ_KEY_PREFIX}:list:{category_id or '*'}:{difficulty or '*'}"

    @staticmethod
    def quiz_detail_key(quiz_id: str) -> str:
        return f"{QUIZ_KEY_PREFIX}:detail:{quiz_id}"

    def get(self, key: str) -> Optional[Any]:
        if not self.redis_client:
            return None

        try:
            raw = self.redis_client.get(key)
        except redis.RedisError as e:
            logger.error(f"Cache get error for {key}: {str(e)}")
            return None

        if raw is None:
            logger.debug(f"Cache miss: {key}")
            return None
        try:
            value = json.loads(raw)
        except ValueError as e:
            logger.warning(f"Discarding unreadable cache entry {key}: {str(e)}")
            self.delete(key)
            return None

        logger.debug(f"Cache hit: {key}")
        return value

    def delete(self, key: str) -> None:
        if not self.redis_client:
            return

        try:
            self.redis_client.delete(key)
        except redis.RedisError as e:
            logger.error(f"Cache delete error for {key}: {str(e)}")

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        Store a JSON-serializable value

        Args:
            key: Cache key
            value: Plain JSON data (run models through jsonable_encoder first)
            ttl: Seconds to live, QUIZ_CACHE_TTL when omitted

        Returns:
            True if Redis accepted the value
        """
        if not self.redis_client:
            return False

        try:
            self.redis_client.setex(key, ttl or self.default_ttl, json.dumps(value))
        except redis.RedisError as e:
            logger.error(f"Cache set error for {key}: {str(e)}")
            return False
        return True

    def get_or_set(self, key: str, loader: Callable[[], Any], ttl: Optional[int] = None) -> Any:
        """Return the cached value, or call loader() and cache what it returns"""
        cached = self.get(key)
        if cached is not None:
            return cached

        value = loader()
        self.set(key, value, ttl)
        return value

    def clear_quiz_cache(self) -> int:
        """Delete every listing and detail entry; returns how many keys went"""
        if not self.redis_client:
            return 0

        try:
            keys = list(self.redis_client.scan_iter(match=f"{QUIZ_KEY_PREFIX}:*", count=500))
            if keys:
                self.redis_client.delete(*keys)
        except redis.RedisError as e:
            logger.error(f"Cache clear error: {str(e)}")
            return 0

        if keys:
            logger.info(f"Cleared {len(keys)} quiz cache entries")
        return len(keys)


# Global instance
cache_service = CacheService(enabled=settings.CACHE_ENABLED)
