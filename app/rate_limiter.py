"""
Fixed-window per-IP rate limiting

Counters live in an in-process table. Expired windows are swept periodically.
When REDIS_URL is configured the counters are also synced to Redis so the limit
holds across several server instances.
"""

import logging
import time
from threading import Lock
from typing import Optional

import redis
from fastapi import Request

from .config import REDIS_URL
from .errors import ApiError

logger = logging.getLogger(__name__)

RESERVATION_RATE_LIMIT = 5
RESERVATION_RATE_WINDOW_SECONDS = 15 * 60

# Format: {key: {'count': int, 'reset_time': float, 'last_redis_sync': float}}
memory_cache: dict[str, dict] = {}
cache_lock = Lock()

MEMORY_CACHE_SYNC_INTERVAL = 10  # Sync to Redis every 10 seconds
MEMORY_CACHE_CLEANUP_INTERVAL = 60  # Sweep expired entries every 60 seconds
last_cleanup_time = 0.0

redis_client: Optional[redis.Redis] = None


def get_redis_client() -> Optional[redis.Redis]:
    """Get or create the Redis client; None when no REDIS_URL is configured"""
    global redis_client

    if not REDIS_URL:
        return None

    if redis_client is None:
        logger.info("🔄 Initializing Redis connection for rate limiting...")
        redis_client = redis.from_url(
            REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        redis_client.ping()
        logger.info("Redis connected successfully via URL")

    return redis_client


def cleanup_expired_cache(now: float) -> None:
    """Remove expired windows from the memory table"""
    global last_cleanup_time

    if now - last_cleanup_time < MEMORY_CACHE_CLEANUP_INTERVAL:
        return

    expired_keys = [k for k, v in memory_cache.items() if now >= v["reset_time"]]
    for k in expired_keys:
        del memory_cache[k]

    if expired_keys:
        logger.debug(f"🧹 Cleaned up {len(expired_keys)} expired rate limit entries")

    last_cleanup_time = now


def _load_entry(key: str, window_seconds: int, now: float, client: Optional[redis.Redis]) -> dict:
    """New memory entry, seeded from Redis when another instance already counted"""
    if client is not None:
        try:
            redis_count = client.get(key)
            redis_ttl = client.ttl(key)
            if redis_count and redis_ttl > 0:
                return {
                    "count": int(redis_count),
                    "reset_time": now + redis_ttl,
                    "last_redis_sync": now,
                }
        except redis.RedisError as e:
            logger.warning(f"⚠️ Failed to load from Redis, using memory only: {e}")

    return {"count": 0, "reset_time": now + window_seconds, "last_redis_sync": 0.0}


def _sync_entry(key: str, entry: dict, now: float, client: Optional[redis.Redis]) -> None:
    if client is None or now - entry["last_redis_sync"] < MEMORY_CACHE_SYNC_INTERVAL:
        return
    ttl = max(1, int(entry["reset_time"] - now))
    try:
        client.set(key, entry["count"], ex=ttl)
        entry["last_redis_sync"] = now
    except redis.RedisError as e:
        logger.warning(f"⚠️ Failed to sync to Redis: {e}")


def check_rate_limit(
    key: str,
    limit: int,
    window_seconds: int,
    client: Optional[redis.Redis] = None,
    now: Optional[float] = None,
) -> tuple[bool, int, int]:
    """Count one request against a fixed window.

    The window starts with the first request for the key and resets
    unconditionally once it has elapsed.

    Returns:
        Tuple of (is_allowed, current_count, seconds_until_reset)
    """
    now = time.time() if now is None else now

    with cache_lock:
        cleanup_expired_cache(now)

        entry = memory_cache.get(key)
        if entry is None:
            entry = _load_entry(key, window_seconds, now, client)
            memory_cache[key] = entry

        if now >= entry["reset_time"]:
            entry["count"] = 0
            entry["reset_time"] = now + window_seconds
            entry["last_redis_sync"] = 0.0

        entry["count"] += 1
        is_allowed = entry["count"] <= limit

        _sync_entry(key, entry, now, client)

        ttl = max(0, int(entry["reset_time"] - now))
        return is_allowed, entry["count"], ttl


def reset_rate_limits() -> None:
    global last_cleanup_time
    with cache_lock:
        memory_cache.clear()
        last_cleanup_time = 0.0


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, then X-Real-IP, then the socket peer"""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return request.client.host if request.client else "unknown"


async def rate_limit_dependency(
    request: Request,
    limit: int,
    window_seconds: int,
    key_prefix: str,
    message: str,
):
    try:
        client = get_redis_client()
    except (redis.RedisError, OSError) as e:
        logger.warning(f"⚠️ Redis unavailable, rate limiting from memory only: {e}")
        client = None

    client_ip = get_client_ip(request)
    key = f"{key_prefix}:{client_ip}"

    is_allowed, current_count, ttl = check_rate_limit(key, limit, window_seconds, client)

    if not is_allowed:
        logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit} requests")
        raise ApiError(
            status_code=429,
            error="Rate limit exceeded",
            message=message,
            headers={"Retry-After": str(max(1, ttl))},
        )

    request.state.rate_limit_remaining = limit - current_count
    request.state.rate_limit_reset = int(time.time()) + ttl


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str, message: str):
    """
    Create a rate limiter dependency with specific parameters

    Example usage:
        rate_limit_reservations = create_rate_limiter(5, 900, "reservation", "Zu viele Anfragen.")

        @router.post("")
        async def create(_: None = Depends(rate_limit_reservations)):
            ...
    """

    async def rate_limiter(request: Request):
        return await rate_limit_dependency(request, limit, window_seconds, key_prefix, message)

    return rate_limiter


rate_limit_reservations = create_rate_limiter(
    limit=RESERVATION_RATE_LIMIT,
    window_seconds=RESERVATION_RATE_WINDOW_SECONDS,
    key_prefix="reservation",
    message="Zu viele Anfragen. Bitte versuchen Sie es in 15 Minuten erneut.",
)
