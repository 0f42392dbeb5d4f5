"""
Short-TTL Redis cache in front of the quota ledger.

The cache is an optimization only: every Redis failure is logged and turned
into a miss (reads) or a no-op (writes). Callers always fall back to the
ledger.
"""
import logging
from typing import Optional

import redis
from redis.exceptions import RedisError

from app.core.config import Settings
from app.core.exceptions import CacheUnavailable
from app.core.plan_limits import normalize_action_kind

logger = logging.getLogger(__name__)

# Counts only grow within a period, so a write never lowers the cached value.
# This keeps an out-of-order write-through from re-publishing an older total.
_SET_IF_HIGHER = """
local current = redis.call('GET', KEYS[1])
if (not current) or (tonumber(current) < tonumber(ARGV[1])) then
    redis.call('SET', KEYS[1], ARGV[1], 'EX', ARGV[2])
    return 1
end
redis.call('EXPIRE', KEYS[1], ARGV[2])
return 0
"""


def usage_cache_key(user_id: int, action_kind, period_key: str) -> str:
    """Cache key for one (user, action kind, period) usage count."""
    return f"user:{user_id}:usage:{normalize_action_kind(action_kind)}:{period_key}"


def build_redis_client(settings: Settings) -> Optional[redis.Redis]:
    """Create the Redis client, or None when no REDIS_URL is configured."""
    if not settings.redis_url:
        logger.info("REDIS_URL not configured - usage cache disabled")
        return None
    return redis.Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_connect_timeout=2,
        socket_timeout=2,
    )


class UsageCache:
    """Usage-count cache keyed by (user_id, action_kind, period_key)."""

    def __init__(self, client: Optional[redis.Redis], ttl_seconds: int = 60):
        if ttl_seconds <= 0:
            raise ValueError("Usage cache TTL must be positive")
        self.client = client
        self.ttl_seconds = ttl_seconds

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def get(self, user_id: int, action_kind, period_key: str) -> Optional[int]:
        """Get a cached count; None on miss, disabled cache, or Redis failure."""
        if not self.enabled:
            return None
        key = usage_cache_key(user_id, action_kind, period_key)
        try:
            raw = self.client.get(key)
        except RedisError as e:
            logger.warning(f"Usage cache get failed, falling back to ledger: key={key}: {e}")
            return None
        if raw is None:
            return None
        try:
            return int(raw)
        except (TypeError, ValueError):
            logger.warning(f"Discarding malformed usage cache value: key={key}, value={raw!r}")
            self._delete_key(key)
            return None

    def set(self, user_id: int, action_kind, period_key: str, count: int) -> None:
        """
        Store a count read from the ledger.

        Never replaces a higher cached count for the same key.
        """
        if not self.enabled:
            return
        key = usage_cache_key(user_id, action_kind, period_key)
        try:
            self.client.eval(_SET_IF_HIGHER, 1, key, int(count), self.ttl_seconds)
        except RedisError as e:
            logger.warning(f"Usage cache set failed: key={key}: {e}")

    def invalidate_user(self, user_id: int) -> int:
        """
        Drop every cached usage count for a user.

        Returns:
            Number of keys deleted (0 when the cache is disabled or unreachable)
        """
        if not self.enabled:
            return 0
        pattern = f"user:{user_id}:usage:*"
        try:
            keys = list(self.client.scan_iter(match=pattern, count=100))
            if not keys:
                return 0
            return int(self.client.delete(*keys))
        except RedisError as e:
            logger.warning(f"Usage cache invalidation failed: user_id={user_id}: {e}")
            return 0

    def ping(self) -> bool:
        """
        Check Redis connectivity.

        Raises:
            CacheUnavailable: Redis is configured but unreachable
        """
        if not self.enabled:
            return False
        try:
            return bool(self.client.ping())
        except RedisError as e:
            raise CacheUnavailable(f"Redis unreachable: {e}") from e

    def _delete_key(self, key: str) -> None:
        try:
            self.client.delete(key)
        except RedisError as e:
            logger.warning(f"Usage cache delete failed: key={key}: {e}")
