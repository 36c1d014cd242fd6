# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware components.

Exports:
    limiter: slowapi Limiter shared by all routes.
    rate_limit_exceeded_handler: 429 response handler.
"""

from src.api.middleware.rate_limit import limiter, rate_limit_exceeded_handler

__all__ = [
    "limiter",
    "rate_limit_exceeded_handler",
]
