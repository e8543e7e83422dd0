# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-app notification channel.

The outbox row itself is what the application UI reads, so delivery
only records the hand-off in the log.
"""

from src.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    NotificationPayload,
)


class InAppChannel(BaseChannel):
    """In-app notification channel."""

    @property
    def channel_type(self) -> ChannelType:
        """Return the channel type."""
        return ChannelType.IN_APP

    async def send(self, payload: NotificationPayload) -> ChannelResult:
        self.logger.info(
            "Delivered in-app notification %s: type=%s, institution=%s, recipient=%s",
            payload.notification_id,
            payload.notification_type,
            payload.institution_id,
            payload.recipient_id,
        )
        return self.create_success_result(message_id=payload.notification_id)
