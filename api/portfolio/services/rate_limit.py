"""Rate limiting service using Redis."""

from __future__ import annotations

import logging

from fastapi import Request, status

from .. import settings
from ..auth import get_client_ip
from ..cache import get_redis_client
from ..errors import ApiError

logger = logging.getLogger(__name__)


def check_rate_limit(key: str, limit: int, window_seconds: int = 60) -> tuple[bool, int]:
    """
    Check and increment rate limit counter.

    Uses Redis INCR with EXPIRE for fixed window rate limiting.

    Args:
        key: Redis key for the rate limit counter (e.g., "ratelimit:auth:login:1.2.3.4")
        limit: Maximum number of requests allowed in the window
        window_seconds: Time window in seconds (default: 60)

    Returns:
        Tuple of (allowed: bool, remaining: int)
    """
    client = get_redis_client()

    # If Redis is unavailable, allow the request (fail open)
    if not client:
        return True, limit

    try:
        current = client.get(key)
        count = int(current) if current else 0

        if count >= limit:
            return False, 0

        pipe = client.pipeline()
        pipe.incr(key)
        pipe.expire(key, window_seconds)
        results = pipe.execute()

        new_count = results[0]
        return True, max(0, limit - new_count)

    except Exception as e:
        logger.error(f"Rate limit check error for key '{key}': {e}")
        # Fail open - allow request if Redis error
        return True, limit


def auth_rate_limit(request: Request) -> None:
    """FastAPI dependency: throttle auth endpoints per client IP and path."""
    key = f"ratelimit:auth:{request.url.path}:{get_client_ip(request)}"
    allowed, _ = check_rate_limit(key, settings.AUTH_RATE_LIMIT, settings.AUTH_RATE_WINDOW_SECONDS)
    if not allowed:
        logger.warning(f"Auth rate limit exceeded for {key}")
        raise ApiError(
            status.HTTP_429_TOO_MANY_REQUESTS,
            "Too many attempts. Please try again later.",
        )
