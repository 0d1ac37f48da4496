"""
Redis caching utilities for availability lookups
Reduces database load when resolving slots for busy providers
"""
import json
import logging
import uuid
from typing import Any, Callable, Optional

import redis

from .config import REDIS_URL

logger = logging.getLogger(__name__)


def get_redis_client() -> Optional[redis.Redis]:
    """Create a Redis client from REDIS_URL, or None when caching is not configured"""
    if not REDIS_URL:
        return None

    client = redis.from_url(
        REDIS_URL,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        health_check_interval=30,
    )
    client.ping()
    logger.info("Redis connected successfully via URL")
    return client


class Cache:
    """Redis cache wrapper with automatic serialization; fails open when Redis is down"""

    def __init__(self, client_factory: Callable[[], Optional[redis.Redis]] = get_redis_client):
        self._client_factory = client_factory
        self.redis_client = None
        self._disabled = False

    def _get_client(self):
        """Lazy load Redis client"""
        if self.redis_client is None and not self._disabled:
            try:
                self.redis_client = self._client_factory()
            except Exception as e:
                logger.warning(f"⚠️ Redis cache unavailable: {e}")
                self.redis_client = None
            if self.redis_client is None:
                self._disabled = True
        return self.redis_client

    def get(self, key: str) -> Optional[Any]:
        client = self._get_client()
        if not client:
            return None

        try:
            value = client.get(key)
            if value:
                logger.debug(f"✅ Cache HIT: {key}")
                return json.loads(value)
            logger.debug(f"❌ Cache MISS: {key}")
            return None
        except Exception as e:
            logger.error(f"❌ Cache get error for {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        """Set value in cache with TTL (default 5 minutes)"""
        client = self._get_client()
        if not client:
            return False

        try:
            client.setex(key, ttl, json.dumps(value))
            logger.debug(f"✅ Cache SET: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"❌ Cache set error for {key}: {e}")
            return False

    def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching pattern (e.g., 'availability:12:*')"""
        client = self._get_client()
        if not client:
            return 0

        try:
            keys = list(client.scan_iter(match=pattern))
            if keys:
                deleted = client.delete(*keys)
                logger.debug(f"✅ Cache DELETE pattern: {pattern} ({deleted} keys)")
                return deleted
            return 0
        except Exception as e:
            logger.error(f"❌ Cache delete pattern error for {pattern}: {e}")
            return 0


# Shared instance used by the API process
cache = Cache()


# How long an invalidation stays visible to reads that started before it
INVALIDATION_MARKER_TTL = 60


def build_schedule_window_key(provider_id: int, day: str) -> str:
    """Cache key for the rules/exceptions window of one provider on one date"""
    return f"availability:{provider_id}:{day}"


def build_invalidation_marker_key(provider_id: Optional[int] = None) -> str:
    scope = "all" if provider_id is None else provider_id
    return f"availability-invalidated:{scope}"


def read_invalidation_markers(provider_id: int, target: Optional[Cache] = None) -> tuple:
    """
    Current invalidation tokens for a provider and for the whole business.

    A reader compares these before and after loading a window from the
    database and only writes the window back when they are unchanged.
    """
    target = target or cache
    return (
        target.get(build_invalidation_marker_key(provider_id)),
        target.get(build_invalidation_marker_key()),
    )


def _invalidate(target: Cache, marker_key: str, pattern: str) -> int:
    target.set(marker_key, uuid.uuid4().hex, INVALIDATION_MARKER_TTL)
    return target.delete_pattern(pattern)


def invalidate_provider_availability(provider_id: int, target: Optional[Cache] = None) -> int:
    """Drop cached windows for a provider after its rules or exceptions change"""
    return _invalidate(
        target or cache, build_invalidation_marker_key(provider_id), f"availability:{provider_id}:*"
    )


def invalidate_all_availability(target: Optional[Cache] = None) -> int:
    """Drop every cached window after a business-wide exception or holiday changes"""
    return _invalidate(target or cache, build_invalidation_marker_key(), "availability:*")
