"""Redis client shared by the rate limiter."""

from __future__ import annotations

import logging
import os

import redis

logger = logging.getLogger(__name__)

_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis | None:
    """
    Get or create the Redis client instance.

    Returns None when REDIS_URL is not configured or the server is unreachable.
    """
    global _redis_client

    if _redis_client is not None:
        return _redis_client

    redis_url = os.getenv("REDIS_URL")
    if not redis_url:
        return None

    try:
        client = redis.from_url(redis_url, decode_responses=True)
        # Test connection
        client.ping()
        logger.info("Redis connected successfully")
        _redis_client = client
        return _redis_client
    except Exception as e:
        logger.warning(f"Redis unavailable: {e}. Continuing without it.")
        return None

