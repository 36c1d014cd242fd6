# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Webhook notification channel using httpx.

Posts mentor alerts as JSON to MENTOR_WEBHOOK_URL. Any 2xx response
counts as sent. When no URL is configured every send is skipped.
"""

import httpx

from src.core.config.settings import MentorNotificationSettings
from src.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    MentorAlertPayload,
)


class WebhookChannel(BaseChannel):
    """Mentor alert delivery over an HTTP webhook.

    Attributes:
        settings: Mentor notification settings.
    """

    def __init__(
        self,
        settings: MentorNotificationSettings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__()
        self.settings = settings
        self._client = client

    @property
    def channel_type(self) -> ChannelType:
        return ChannelType.WEBHOOK

    async def send(self, payload: MentorAlertPayload) -> ChannelResult:
        if not self.settings.is_configured:
            return self.create_skipped_result("Mentor webhook not configured")

        try:
            if self._client is not None:
                response = await self._post(self._client, payload)
            else:
                async with httpx.AsyncClient(timeout=self.settings.timeout_seconds) as client:
                    response = await self._post(client, payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self.logger.error(
                "Mentor webhook rejected alert for %s: HTTP %s",
                payload.student_id,
                e.response.status_code,
            )
            return self.create_failure_result(
                f"Webhook returned HTTP {e.response.status_code}",
                metadata={"status_code": e.response.status_code},
            )
        except httpx.HTTPError as e:
            self.logger.error(
                "Mentor webhook unreachable for %s: %s",
                payload.student_id,
                str(e),
            )
            return self.create_failure_result(f"Webhook error: {e}")

        self.logger.info("Mentor alert sent for %s", payload.student_id)
        return self.create_success_result(metadata={"status_code": response.status_code})

    async def _post(self, client: httpx.AsyncClient, payload: MentorAlertPayload) -> httpx.Response:
        return await client.post(self.settings.webhook_url, json=payload.to_dict())
