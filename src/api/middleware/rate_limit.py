# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Rate limiting using slowapi.

Signal endpoints are limited per client IP address. Limits and storage
come from RATE_LIMIT_* settings; RATE_LIMIT_ENABLED=false turns limiting
off entirely.

Example:
    @router.post("/daily-checkin")
    @limiter.limit(RATE_LIMIT_SIGNALS)
    async def daily_checkin(request: Request, data: DailyCheckinRequest):
        ...
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from src.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

RATE_LIMIT_SIGNALS = f"{settings.rate_limit.requests_per_minute}/minute"

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[RATE_LIMIT_SIGNALS],
    storage_uri=settings.rate_limit.storage_uri,
    enabled=settings.rate_limit.enabled,
)


async def rate_limit_exceeded_handler(
    request: Request,
    exc: RateLimitExceeded,
) -> JSONResponse:
    """Return 429 with the same error body as other API failures."""
    logger.warning(
        "Rate limit exceeded: %s for %s",
        exc.detail,
        get_remote_address(request),
    )
    return JSONResponse(
        status_code=429,
        content={"error": "Too many requests. Please try again later."},
        headers={"Retry-After": "60"},
    )
