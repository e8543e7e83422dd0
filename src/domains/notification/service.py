# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification outbox.

Workflow services record events here in the same session (and therefore
the same transaction) as the state change that produced them. Delivery
is the dispatch sweep's job; see
src.infrastructure.notifications.service.NotificationDispatcher.
"""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.exceptions import ValidationError
from src.infrastructure.database.connection import transaction
from src.infrastructure.database.models import (
    Notification,
    NotificationStatus,
    NotificationType,
)

logger = logging.getLogger(__name__)

CHANNELS = frozenset({"in_app", "email", "webhook"})


class InvalidChannelError(ValidationError):
    """Raised for an unknown delivery channel."""


class NotificationService:
    """Outbox writer and reader.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    def enqueue(
        self,
        institution_id: str,
        notification_type: NotificationType | str,
        payload: dict[str, Any],
        channel: str = "in_app",
        recipient_id: str | None = None,
    ) -> Notification:
        """Append a pending notification to the current unit of work.

        Nothing is flushed or committed here; the row becomes durable with
        the caller's commit.

        Raises:
            InvalidChannelError: If the channel is unknown.
        """
        if channel not in CHANNELS:
            raise InvalidChannelError(f"Unknown notification channel: {channel}")

        type_value = (
            notification_type.value
            if isinstance(notification_type, NotificationType)
            else notification_type
        )
        notification = Notification(
            institution_id=institution_id,
            channel=channel,
            type=type_value,
            payload=payload,
            status=NotificationStatus.PENDING.value,
            recipient_id=recipient_id,
        )
        self.db.add(notification)

        logger.debug(
            "Enqueued notification: type=%s, channel=%s, institution=%s",
            type_value,
            channel,
            institution_id,
        )
        return notification

    async def queue(
        self,
        institution_id: str,
        notification_type: str,
        payload: dict[str, Any],
        channel: str = "in_app",
        recipient_id: str | None = None,
    ) -> Notification:
        """Enqueue a single notification in its own transaction."""
        async with transaction(self.db):
            notification = self.enqueue(
                institution_id,
                notification_type,
                payload,
                channel=channel,
                recipient_id=recipient_id,
            )
        return notification

    async def list_notifications(
        self,
        institution_id: str,
        status: NotificationStatus | None = None,
        notification_type: str | None = None,
        recipient_id: str | None = None,
        limit: int = 100,
    ) -> list[Notification]:
        """List an institution's notifications, newest first."""
        query = select(Notification).where(Notification.institution_id == institution_id)

        if recipient_id:
            query = query.where(Notification.recipient_id == recipient_id)
        if status is not None:
            query = query.where(Notification.status == status.value)
        if notification_type:
            query = query.where(Notification.type == notification_type)

        query = query.order_by(Notification.created_at.desc()).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())
