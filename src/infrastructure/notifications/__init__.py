# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification delivery.

Workflow services write outbox rows through
src.domains.notification.NotificationService. This package delivers
them: the NotificationDispatcher is run by the dispatch sweep and hands
each pending row to the channel it was queued for.

Key Components:
- NotificationDispatcher: Batch delivery with per-item transactions
- Channels: InAppChannel, EmailChannel, WebhookChannel
- NotificationPayload: Data structure handed to channels

Usage:
    from src.infrastructure.notifications import get_notification_dispatcher

    result = await get_notification_dispatcher().dispatch()

Configuration (environment variables):
- NOTIFICATION_WEBHOOK_URL: Webhook endpoint
- NOTIFICATION_WEBHOOK_TIMEOUT: Webhook timeout in seconds
- NOTIFICATION_EMAIL_FROM: Sender address for email deliveries
"""

from src.infrastructure.notifications.channels import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    DeliveryStatus,
    EmailChannel,
    InAppChannel,
    NotificationPayload,
    WebhookChannel,
)
from src.infrastructure.notifications.service import (
    DispatchResult,
    NotificationDispatcher,
    get_notification_dispatcher,
    reset_notification_dispatcher,
)

__all__ = [
    # Dispatcher
    "NotificationDispatcher",
    "DispatchResult",
    "get_notification_dispatcher",
    "reset_notification_dispatcher",
    # Channel types
    "BaseChannel",
    "ChannelResult",
    "ChannelType",
    "DeliveryStatus",
    "NotificationPayload",
    # Channels
    "EmailChannel",
    "InAppChannel",
    "WebhookChannel",
]
