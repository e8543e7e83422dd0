# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from src.infrastructure.database.models import NotificationStatus
from src.models.common import ORMModel


class NotificationQueueRequest(BaseModel):
    type: str = Field(min_length=1, max_length=50)
    payload: dict[str, Any] = Field(default_factory=dict)
    channel: Literal["in_app", "email", "webhook"] = "in_app"
    recipient_id: str | None = None


class NotificationResponse(ORMModel):
    id: str
    institution_id: str
    channel: str
    type: str
    payload: dict[str, Any]
    status: NotificationStatus
    attempts: int
    last_error: str | None = None
    sent_at: datetime | None = None
    recipient_id: str | None = None
    created_at: datetime


class NotificationFlushResponse(BaseModel):
    sent: list[str]
    failed: list[str]
