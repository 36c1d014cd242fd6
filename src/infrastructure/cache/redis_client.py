# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Redis client for status fan-out across API workers.

Wraps the redis-py async client with JSON serialization, the key and
pub/sub operations the status sync backend needs, and a health ping.

Example:
    from src.infrastructure.cache import init_redis, get_redis

    await init_redis(settings)
    redis = get_redis()
    await redis.publish("student_status:s-1", {"status": "normal"})
"""

import json
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any, Optional

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError as BaseRedisError

if TYPE_CHECKING:
    from src.core.config.settings import Settings

# Module-level state
_redis_client: Optional["RedisClient"] = None


class RedisError(Exception):
    """Exception raised for Redis operation failures.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying Redis error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class RedisClient:
    """Async Redis client with JSON values.

    Example:
        client = RedisClient(settings)
        await client.connect()
        await client.set("key", {"a": 1}, expire_seconds=60)
        await client.close()
    """

    def __init__(self, settings: "Settings") -> None:
        self._settings = settings
        self._pool: Optional[ConnectionPool] = None
        self._redis: Optional[Redis] = None

    async def connect(self) -> None:
        """Create the Redis connection pool.

        Raises:
            RedisError: If connection fails.
        """
        try:
            self._pool = ConnectionPool.from_url(
                self._settings.redis.url,
                max_connections=self._settings.redis.max_connections,
                decode_responses=True,
            )
            self._redis = Redis(connection_pool=self._pool)
            await self._redis.ping()
        except BaseRedisError as e:
            raise RedisError("Failed to connect to Redis", e) from e

    async def close(self) -> None:
        """Close the Redis connection pool."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

        if self._pool is not None:
            await self._pool.disconnect()
            self._pool = None

    def _ensure_connected(self) -> Redis:
        if self._redis is None:
            raise RedisError("Redis client not connected. Call connect() first.")
        return self._redis

    def _serialize(self, value: Any) -> str:
        if isinstance(value, str):
            return value
        return json.dumps(value, ensure_ascii=False, default=str)

    def _deserialize(self, value: Optional[str]) -> Any:
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value

    async def set(
        self,
        key: str,
        value: Any,
        expire_seconds: Optional[int] = None,
    ) -> None:
        """Set a key, JSON-encoding non-string values.

        Raises:
            RedisError: If the operation fails.
        """
        redis = self._ensure_connected()
        try:
            await redis.set(key, self._serialize(value), ex=expire_seconds)
        except BaseRedisError as e:
            raise RedisError(f"Failed to set key: {key}", e) from e

    async def publish(self, channel: str, message: Any) -> int:
        """Publish a message to a channel.

        Returns:
            Number of subscribers that received the message.

        Raises:
            RedisError: If the operation fails.
        """
        redis = self._ensure_connected()
        try:
            return await redis.publish(channel, self._serialize(message))
        except BaseRedisError as e:
            raise RedisError(f"Failed to publish to channel: {channel}", e) from e

    async def listen(self, pattern: str) -> AsyncIterator[tuple[str, Any]]:
        """Yield (channel, message) for every message matching a pattern.

        Runs until cancelled.

        Raises:
            RedisError: If the subscription fails.
        """
        redis = self._ensure_connected()
        pubsub = redis.pubsub()
        try:
            await pubsub.psubscribe(pattern)
            async for message in pubsub.listen():
                if message.get("type") != "pmessage":
                    continue
                yield message["channel"], self._deserialize(message["data"])
        except BaseRedisError as e:
            raise RedisError(f"Subscription to {pattern} failed", e) from e
        finally:
            await pubsub.aclose()

    async def ping(self) -> bool:
        """Check if Redis is reachable."""
        try:
            redis = self._ensure_connected()
            await redis.ping()
            return True
        except (RedisError, BaseRedisError):
            return False


async def init_redis(settings: "Settings") -> None:
    """Initialize the global Redis client.

    Raises:
        RedisError: If connection fails.
    """
    global _redis_client

    client = RedisClient(settings)
    await client.connect()
    _redis_client = client


async def close_redis() -> None:
    """Close the global Redis client."""
    global _redis_client

    if _redis_client is not None:
        await _redis_client.close()
        _redis_client = None


def get_redis() -> RedisClient:
    """Get the global Redis client.

    Raises:
        RedisError: If Redis has not been initialized.
    """
    if _redis_client is None:
        raise RedisError("Redis not initialized. Call init_redis() first.")
    return _redis_client


def is_redis_initialized() -> bool:
    """Whether init_redis() has completed."""
    return _redis_client is not None
