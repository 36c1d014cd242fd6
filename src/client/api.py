# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""HTTP client for the engagement API."""

import logging
from typing import Any

import httpx

from src.core.config.settings import ClientSettings

logger = logging.getLogger(__name__)


class EngagementAPIClient:
    """Thin async wrapper over the /api/v1 engagement endpoints.

    Non-2xx responses raise httpx.HTTPStatusError. Callers decide what a
    failure means for local state.
    """

    def __init__(
        self,
        settings: ClientSettings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings
        self.student_id = settings.student_id
        self._client = client or httpx.AsyncClient(
            base_url=settings.api_url.rstrip("/"),
            timeout=settings.request_timeout_seconds,
        )

    async def __aenter__(self) -> "EngagementAPIClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        response = await self._client.post(path, json=body)
        response.raise_for_status()
        return response.json()

    async def get_status(self) -> dict[str, Any]:
        """Fetch {"student": ..., "intervention": ...} for this student."""
        response = await self._client.get(f"/student/{self.student_id}/status")
        response.raise_for_status()
        return response.json()

    async def daily_checkin(self, quiz_score: float, focus_duration: str) -> dict[str, Any]:
        return await self._post("/daily-checkin", {
            "student_id": self.student_id,
            "quiz_score": quiz_score,
            "focus_duration": focus_duration,
        })

    async def report_cheat(self, focus_duration: str, reason: str) -> dict[str, Any]:
        return await self._post("/report-cheat", {
            "student_id": self.student_id,
            "focus_duration": focus_duration,
            "reason": reason,
        })

    async def complete_intervention(
        self,
        intervention_id: int,
        focus_duration: str,
    ) -> dict[str, Any]:
        return await self._post("/complete-intervention", {
            "student_id": self.student_id,
            "intervention_id": intervention_id,
            "focus_duration": focus_duration,
        })
