# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification outbox."""

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, CheckConstraint, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, IdMixin, TenantMixin, TimestampMixin


class NotificationStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"


class NotificationType(str, Enum):
    """Workflow events written to the outbox."""

    EXAM_SUBMITTED = "exam_submitted"
    GRADE_VALIDATED = "grade_validated"
    EXAM_LOCKED = "exam_locked"
    EXAM_UNLOCKED = "exam_unlocked"
    ATTENDANCE_ALERT = "attendance_alert"
    ENROLLMENT_OPEN = "enrollment_open"
    ENROLLMENT_CLOSED = "enrollment_closed"


class Notification(Base, IdMixin, TenantMixin, TimestampMixin):
    """A workflow event waiting for (or done with) delivery.

    Request handlers only insert rows; the dispatch sweep is the only writer
    of status, attempts and sent_at.
    """

    __tablename__ = "notifications"
    __table_args__ = (
        CheckConstraint("status IN ('pending', 'sent')", name="valid_notification_status"),
        CheckConstraint(
            "channel IN ('in_app', 'email', 'webhook')", name="valid_notification_channel"
        ),
    )

    channel: Mapped[str] = mapped_column(String(20), nullable=False, default="in_app")
    type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=NotificationStatus.PENDING.value, index=True
    )
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    recipient_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
