"""
Rate Limiting Module

Limits how often a client may hit the public document verification
endpoints, so short identifiers cannot be enumerated cheaply.

Uses the shared Redis client when it is initialized and falls back to an
in-memory sliding window otherwise (single process only).
"""

import logging
import time
from collections.abc import Callable
from functools import wraps
from typing import Any

from fastapi import HTTPException, Request, status

from app.core import redis as redis_state
from app.core.config import settings

logger = logging.getLogger(__name__)

# In-memory fallback store: {key: [timestamp, ...]}
_memory_store: dict[str, list[float]] = {}
# Time after which each key holds no hit inside its window: {key: timestamp}
_memory_expiry: dict[str, float] = {}

_SWEEP_INTERVAL_SECONDS = 60
_last_sweep = 0.0


class RateLimitExceeded(HTTPException):
    """Exception raised when rate limit is exceeded."""

    def __init__(self, limit: int, window_seconds: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "RATE_LIMIT_EXCEEDED",
                "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                "retry_after_seconds": window_seconds,
            },
            headers={"Retry-After": str(window_seconds)},
        )


async def _check_rate_limit_redis(client, key: str, limit: int, window_seconds: int) -> bool:
    """
    Sliding window check on a Redis sorted set.

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    now = time.time()
    window_start = now - window_seconds

    pipe = client.pipeline()
    pipe.zremrangebyscore(key, 0, window_start)
    pipe.zcard(key)
    pipe.zadd(key, {str(now): now})
    pipe.expire(key, window_seconds)

    results = await pipe.execute()
    current_count = results[1]

    return current_count < limit


def _check_rate_limit_memory(key: str, limit: int, window_seconds: int) -> bool:
    """
    Sliding window check in process memory.

    Fallback when Redis is unavailable. Does not work across multiple
    server instances.
    """
    now = time.time()
    window_start = now - window_seconds
    _sweep_memory_store(now)

    hits = [ts for ts in _memory_store.get(key, []) if ts > window_start]

    if len(hits) >= limit:
        _memory_store[key] = hits
        return False

    hits.append(now)
    _memory_store[key] = hits
    _memory_expiry[key] = now + window_seconds
    return True


def _sweep_memory_store(now: float) -> None:
    """Drop keys of clients that have been idle for longer than their window."""
    global _last_sweep
    if now - _last_sweep < _SWEEP_INTERVAL_SECONDS:
        return
    _last_sweep = now

    for key in [k for k, expires_at in _memory_expiry.items() if expires_at <= now]:
        _memory_store.pop(key, None)
        del _memory_expiry[key]


def reset_memory_store() -> None:
    """Forget all in-memory counters."""
    global _last_sweep
    _memory_store.clear()
    _memory_expiry.clear()
    _last_sweep = 0.0


async def check_rate_limit(key: str, limit: int, window_seconds: int) -> bool:
    """
    Check if a request is within rate limits.

    Tries Redis first, falls back to in-memory storage.

    Args:
        key: Unique key for this rate limit (e.g., "verify:10.0.0.1")
        limit: Maximum requests allowed in the window
        window_seconds: Time window in seconds

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    if not settings.rate_limit_enabled:
        return True

    client = redis_state.redis_client
    if client is not None:
        try:
            return await _check_rate_limit_redis(client, key, limit, window_seconds)
        except Exception as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    return _check_rate_limit_memory(key, limit, window_seconds)


def rate_limit(
    limit: int | None = None,
    window_seconds: int = 60,
    key_func: Callable[[Request], str] | None = None,
):
    """
    Rate limiting decorator for FastAPI endpoints.

    The decorated endpoint must accept a ``request: Request`` argument.

    Usage:
        @router.get("/verify/{short_id}")
        @rate_limit(window_seconds=60)
        async def verify(request: Request, ...):
            ...

    Args:
        limit: Maximum requests in the window (default: settings.verify_rate_limit)
        window_seconds: Time window in seconds (default: 60)
        key_func: Builds the key from the request; defaults to client IP + path

    Raises:
        RateLimitExceeded: When rate limit is exceeded (HTTP 429)
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            request: Request | None = kwargs.get("request")
            if request is None:
                request = next((arg for arg in args if isinstance(arg, Request)), None)

            if request is None:
                logger.warning(
                    f"Rate limit decorator on {func.__name__} couldn't find Request object"
                )
                return await func(*args, **kwargs)

            if key_func:
                key = key_func(request)
            else:
                client_ip = request.client.host if request.client else "unknown"
                key = f"rate_limit:{client_ip}:{request.url.path}"

            effective_limit = limit if limit is not None else settings.verify_rate_limit
            allowed = await check_rate_limit(key, effective_limit, window_seconds)

            if not allowed:
                logger.warning(f"Rate limit exceeded for {key}: {effective_limit}/{window_seconds}s")
                raise RateLimitExceeded(effective_limit, window_seconds)

            return await func(*args, **kwargs)

        return wrapper

    return decorator


def client_ip_key(request: Request) -> str:
    """Rate limit key shared by all verification endpoints of one client."""
    client_ip = request.client.host if request.client else "unknown"
    return f"verify:{client_ip}"


__all__ = [
    "rate_limit",
    "check_rate_limit",
    "client_ip_key",
    "reset_memory_store",
    "RateLimitExceeded",
]
