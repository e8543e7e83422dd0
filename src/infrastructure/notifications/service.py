# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification dispatcher for delivering outbox rows.

The dispatch sweep handles the outbox in bounded batches:
1. Select pending notification IDs across all institutions, fewest
   attempts first and oldest first within the same attempt count, so
   rows that keep failing queue behind fresh ones
2. For each ID, in its own session and transaction, re-read the row
   under a row lock and skip it unless it is still pending
3. Send it through the channel it was queued for
4. Mark it sent, or leave it pending with the attempt counted and the
   error recorded so the next sweep retries it

One failing item never affects the others in the batch.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.core.config import NotificationSettings, get_settings
from src.infrastructure.database.connection import DatabaseError, get_sessionmaker, transaction
from src.infrastructure.database.models import Notification, NotificationStatus
from src.infrastructure.notifications.channels import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    EmailChannel,
    InAppChannel,
    NotificationPayload,
    WebhookChannel,
)
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    """Outcome of one dispatch sweep.

    Attributes:
        sent: IDs marked sent.
        failed: IDs left pending after a failed attempt.
    """

    sent: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"sent": len(self.sent), "failed": len(self.failed)}


class NotificationDispatcher:
    """Delivers pending outbox notifications.

    Attributes:
        channels: Dictionary of available channels.
        batch_size: Maximum notifications handled per sweep.
    """

    def __init__(
        self,
        settings: NotificationSettings | None = None,
        channels: dict[ChannelType, BaseChannel] | None = None,
        batch_size: int | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            settings: Notification settings; defaults to the application settings.
            channels: Channel overrides keyed by type.
            batch_size: Per-sweep limit; defaults to WORKFLOW_DISPATCH_BATCH_SIZE.
        """
        app_settings = get_settings()
        settings = settings or app_settings.notification

        self.channels: dict[ChannelType, BaseChannel] = {
            ChannelType.IN_APP: InAppChannel(),
            ChannelType.EMAIL: EmailChannel(settings),
            ChannelType.WEBHOOK: WebhookChannel(settings),
        }
        if channels:
            self.channels.update(channels)

        self.batch_size = batch_size or app_settings.workflow.dispatch_batch_size

    async def dispatch(
        self,
        sessionmaker: async_sessionmaker[AsyncSession] | None = None,
        limit: int | None = None,
        institution_id: str | None = None,
    ) -> DispatchResult:
        """Deliver up to one batch of pending notifications.

        Args:
            sessionmaker: Session factory; defaults to the application's.
            limit: Override of the batch size.
            institution_id: Restrict the batch to one institution.

        Returns:
            DispatchResult with the IDs sent and failed.
        """
        sessionmaker = sessionmaker or get_sessionmaker()
        result = DispatchResult()

        query = select(Notification.id).where(
            Notification.status == NotificationStatus.PENDING.value
        )
        if institution_id:
            query = query.where(Notification.institution_id == institution_id)

        async with sessionmaker() as session:
            rows = await session.execute(
                query.order_by(
                    Notification.attempts.asc(),
                    Notification.created_at.asc(),
                    Notification.id.asc(),
                )
                .limit(limit or self.batch_size)
            )
            notification_ids = list(rows.scalars().all())

        for notification_id in notification_ids:
            try:
                delivered = await self._dispatch_one(sessionmaker, notification_id)
            except DatabaseError as e:
                logger.error("Failed to record delivery of notification %s: %s", notification_id, e)
                result.failed.append(notification_id)
                continue

            if delivered is True:
                result.sent.append(notification_id)
            elif delivered is False:
                result.failed.append(notification_id)

        if notification_ids:
            logger.info(
                "Dispatch sweep finished: sent=%d, failed=%d",
                len(result.sent),
                len(result.failed),
            )
        return result

    async def _dispatch_one(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        notification_id: str,
    ) -> bool | None:
        """Deliver one notification in its own transaction.

        Returns:
            True if sent, False if the attempt failed, None if the row was
            no longer pending.
        """
        async with sessionmaker() as session:
            async with transaction(session):
                notification = await session.get(
                    Notification,
                    notification_id,
                    with_for_update=True,
                    populate_existing=True,
                )
                if notification is None or notification.status != NotificationStatus.PENDING.value:
                    return None

                channel_result = await self._send(notification)
                notification.attempts += 1

                if channel_result.ok:
                    notification.status = NotificationStatus.SENT.value
                    notification.sent_at = channel_result.sent_at or utc_now()
                    notification.last_error = None
                    return True

                notification.last_error = channel_result.error_message
                logger.error(
                    "Notification %s delivery failed (attempt %d, channel=%s): %s",
                    notification.id,
                    notification.attempts,
                    notification.channel,
                    channel_result.error_message,
                )
                return False

    async def _send(self, notification: Notification) -> ChannelResult:
        channel = self.channels.get(ChannelType(notification.channel))
        payload = NotificationPayload(
            notification_id=notification.id,
            institution_id=notification.institution_id,
            notification_type=notification.type,
            data=dict(notification.payload or {}),
            recipient_id=notification.recipient_id,
        )

        try:
            return await channel.send(payload)
        except Exception as e:
            logger.error(
                "Channel %s raised while sending notification %s",
                notification.channel,
                notification.id,
                exc_info=True,
            )
            return channel.create_failure_result(f"{type(e).__name__}: {e}")


# Singleton instance management
_dispatcher_instance: NotificationDispatcher | None = None


def get_notification_dispatcher() -> NotificationDispatcher:
    """Get or create the notification dispatcher singleton.

    Returns:
        NotificationDispatcher instance.
    """
    global _dispatcher_instance
    if _dispatcher_instance is None:
        _dispatcher_instance = NotificationDispatcher()
    return _dispatcher_instance


def reset_notification_dispatcher() -> None:
    """Drop the singleton so the next call picks up fresh settings."""
    global _dispatcher_instance
    _dispatcher_instance = None
