import json
import logging
from typing import Any

import redis

logger = logging.getLogger(__name__)

CACHE_PREFIXES = ("people", "movies", "characters")


def build_cache_key(prefix: str, *parts: Any):
    """
    Build a Redis cache key with a prefix and optional segments.

    Args:
        prefix (str): Root part of the key.
        *parts: Additional segments.

    Returns:
        str: Colon-separated cache key.
    """
    normalized = [prefix]
    for part in parts:
        normalized.append(str(part) if part is not None else "")
    return ":".join(normalized)


class ResponseCache:
    """
    Read-through cache for GET responses.

    Entries hold the JSON body plus the headers needed to replay the response.
    A disabled cache, or a Redis failure, behaves like a miss.
    """

    def __init__(self, redis_client: redis.Redis | None, ttl_seconds: int):
        self.redis_client = redis_client
        self.ttl_seconds = ttl_seconds

    @property
    def enabled(self):
        return self.redis_client is not None

    def get(self, key: str):
        if not self.enabled:
            return None
        try:
            cached = self.redis_client.get(key)
        except redis.RedisError:
            logger.warning("Redis read failed for %s", key, exc_info=True)
            return None
        if not cached:
            return None
        try:
            return json.loads(cached)
        except json.JSONDecodeError:
            return None

    def set(self, key: str, value: dict):
        if not self.enabled:
            return
        try:
            self.redis_client.setex(key, self.ttl_seconds, json.dumps(value))
        except redis.RedisError:
            logger.warning("Redis write failed for %s", key, exc_info=True)

    def invalidate(self, *prefixes: str):
        """
        Drop every cached entry under the given prefixes.

        Counts cross entity boundaries, so writes usually purge all prefixes.

        Args:
            *prefixes (str): Key prefixes to purge, all known ones when empty.
        """
        if not self.enabled:
            return
        try:
            for prefix in prefixes or CACHE_PREFIXES:
                for key in self.redis_client.scan_iter(f"{prefix}:*"):
                    self.redis_client.delete(key)
        except redis.RedisError:
            logger.warning("Redis invalidation failed", exc_info=True)
