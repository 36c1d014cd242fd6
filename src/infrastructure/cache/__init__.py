# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Redis cache and pub/sub client.

Example:
    await init_redis(settings)
    redis = get_redis()
    await redis.set("student_status:s-1", {"status": "normal"}, expire_seconds=3600)
    await close_redis()
"""

from src.infrastructure.cache.redis_client import (
    RedisClient,
    RedisError,
    close_redis,
    get_redis,
    init_redis,
    is_redis_initialized,
)

__all__ = [
    "RedisClient",
    "RedisError",
    "close_redis",
    "get_redis",
    "init_redis",
    "is_redis_initialized",
]
