"""Redis connection shared by the profile cache, token revocation and message fan-out."""

import json
from typing import Any, cast
from uuid import UUID

import redis
import structlog

from healthnet.config import settings

logger = structlog.get_logger(__name__)

_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """Return the process-wide client, connecting lazily."""
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            username=settings.redis_username,
            password=settings.redis_password,
            decode_responses=settings.redis_decode_responses,
            socket_connect_timeout=5,
            socket_keepalive=True,
            health_check_interval=30,
        )

    return _redis_client


async def check_redis_connection() -> bool:
    try:
        return bool(get_redis_client().ping())
    except (redis.RedisError, OSError) as e:
        logger.warning("redis_unreachable", error=str(e))
        return False


def close_redis_connection() -> None:
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


def profile_key(profile_id: UUID | str) -> str:
    return f"profile:{profile_id}"


def revoked_token_key(token: str) -> str:
    return f"blacklist:{token}"


class CacheManager:
    """
    Best-effort JSON cache and refresh-token blacklist on top of Redis.

    Redis is never the source of truth here: when it cannot be reached,
    reads behave as misses and writes report ``False`` so callers fall back
    to the database.
    """

    def __init__(self, redis_client: redis.Redis):
        self.redis = redis_client

    def get_json(self, key: str) -> Any | None:
        try:
            value = cast(str | None, self.redis.get(key))
            return json.loads(value) if value else None
        except (redis.RedisError, ValueError) as e:
            logger.warning("cache_operation_failed", op="get", key=key, error=str(e))
            return None

    def set_json(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """
        Store ``value`` as JSON, expiring after ``ttl`` seconds when given.

        UUIDs and datetimes are stored as their string form.
        """
        try:
            payload = json.dumps(value, default=str)
            if ttl:
                self.redis.setex(key, ttl, payload)
            else:
                self.redis.set(key, payload)
        except (redis.RedisError, TypeError, ValueError) as e:
            logger.warning("cache_operation_failed", op="set", key=key, error=str(e))
            return False
        return True

    def delete(self, key: str) -> bool:
        try:
            self.redis.delete(key)
        except redis.RedisError as e:
            logger.warning("cache_operation_failed", op="delete", key=key, error=str(e))
            return False
        return True

    def exists(self, key: str) -> bool:
        try:
            return bool(self.redis.exists(key))
        except redis.RedisError as e:
            logger.warning("cache_operation_failed", op="exists", key=key, error=str(e))
            return False

    def revoke_token(self, token: str, ttl: int) -> bool:
        """Blacklist a refresh token for the rest of its lifetime."""
        try:
            self.redis.setex(revoked_token_key(token), ttl, "1")
        except redis.RedisError as e:
            logger.warning("token_revocation_failed", error=str(e))
            return False
        return True

    def is_token_revoked(self, token: str) -> bool:
        return self.exists(revoked_token_key(token))
