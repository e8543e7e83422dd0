# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Webhook notification channel.

POSTs the notification as JSON to the configured endpoint using httpx.

Configuration (via environment variables):
- NOTIFICATION_WEBHOOK_URL: Endpoint URL
- NOTIFICATION_WEBHOOK_TIMEOUT: Request timeout in seconds (default: 10)
"""

import httpx

from src.core.config import NotificationSettings
from src.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    NotificationPayload,
)


class WebhookChannel(BaseChannel):
    """Webhook notification channel.

    Attributes:
        url: Endpoint URL, or None when not configured.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        settings: NotificationSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__()
        self.url = settings.webhook_url
        self.timeout = settings.webhook_timeout
        self._transport = transport

    @property
    def channel_type(self) -> ChannelType:
        """Return the channel type."""
        return ChannelType.WEBHOOK

    async def send(self, payload: NotificationPayload) -> ChannelResult:
        """POST the notification to the webhook endpoint.

        Args:
            payload: The notification payload.

        Returns:
            ChannelResult with delivery status.
        """
        if not self.url:
            return self.create_failure_result("Webhook URL not configured")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(self.url, json=payload.to_dict())
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            return self.create_failure_result(
                f"Webhook returned {e.response.status_code}",
                metadata={"status_code": e.response.status_code},
            )
        except httpx.HTTPError as e:
            return self.create_failure_result(f"Webhook request failed: {e}")

        self.logger.info(
            "Posted webhook notification %s to %s (%d)",
            payload.notification_id,
            self.url,
            response.status_code,
        )
        return self.create_success_result(
            message_id=payload.notification_id,
            metadata={"status_code": response.status_code},
        )
