# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Email notification channel.

There is no SMTP transport in this service. The channel records the
message it would send, with the configured sender, so the outbox row
can be marked delivered and picked up by the mail relay's log shipper.

Configuration (via environment variables):
- NOTIFICATION_EMAIL_FROM: Sender email address
"""

from src.core.config import NotificationSettings
from src.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    NotificationPayload,
)


class EmailChannel(BaseChannel):
    """Email notification channel.

    Attributes:
        from_email: Sender address.
    """

    def __init__(self, settings: NotificationSettings) -> None:
        super().__init__()
        self.from_email = settings.email_from

    @property
    def channel_type(self) -> ChannelType:
        """Return the channel type."""
        return ChannelType.EMAIL

    def _build_subject(self, payload: NotificationPayload) -> str:
        return payload.notification_type.replace("_", " ").capitalize()

    async def send(self, payload: NotificationPayload) -> ChannelResult:
        """Record an email delivery.

        Args:
            payload: The notification payload.

        Returns:
            ChannelResult with delivery status.
        """
        subject = self._build_subject(payload)
        self.logger.info(
            "Email notification %s: from=%s, to=%s, subject=%s",
            payload.notification_id,
            self.from_email,
            payload.recipient_id,
            subject,
        )
        return self.create_success_result(
            message_id=payload.notification_id,
            metadata={"from": self.from_email, "subject": subject},
        )
