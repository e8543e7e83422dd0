# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification outbox API endpoints.

- GET / - List notifications (admins see the whole institution)
- POST / - Queue a notification manually (admin)
- POST /flush - Dispatch the institution's pending notifications now (admin)
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query, status

from src.api.dependencies import DB, AdminUser, AuthenticatedUser, InstitutionId
from src.domains.notification.service import NotificationService
from src.infrastructure.database.models import NotificationStatus
from src.infrastructure.notifications import get_notification_dispatcher
from src.models.notification import (
    NotificationFlushResponse,
    NotificationQueueRequest,
    NotificationResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=list[NotificationResponse],
    summary="List notifications",
    description="Admins see every notification of the institution; other users "
    "see the notifications addressed to them.",
)
async def list_notifications(
    current_user: AuthenticatedUser,
    institution_id: InstitutionId,
    db: DB,
    notification_status: Annotated[
        NotificationStatus | None, Query(alias="status", description="Filter by status")
    ] = None,
    notification_type: Annotated[
        str | None, Query(alias="type", description="Filter by type")
    ] = None,
    limit: Annotated[int, Query(ge=1, le=500, description="Maximum results")] = 100,
) -> list[NotificationResponse]:
    notifications = await NotificationService(db).list_notifications(
        institution_id,
        status=notification_status,
        notification_type=notification_type,
        recipient_id=None if current_user.is_admin else current_user.id,
        limit=limit,
    )
    return [NotificationResponse.model_validate(n) for n in notifications]


@router.post(
    "",
    response_model=NotificationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Queue notification",
)
async def queue_notification(
    data: NotificationQueueRequest,
    current_user: AdminUser,
    institution_id: InstitutionId,
    db: DB,
) -> NotificationResponse:
    notification = await NotificationService(db).queue(
        institution_id,
        data.type,
        data.payload,
        channel=data.channel,
        recipient_id=data.recipient_id,
    )
    logger.info(
        "Notification queued manually: %s (%s) by %s",
        notification.id,
        data.type,
        current_user.id,
    )
    return NotificationResponse.model_validate(notification)


@router.post(
    "/flush",
    response_model=NotificationFlushResponse,
    summary="Flush pending notifications",
    description="Run one dispatch batch for the institution without waiting for the sweep.",
)
async def flush_notifications(
    current_user: AdminUser,
    institution_id: InstitutionId,
) -> NotificationFlushResponse:
    result = await get_notification_dispatcher().dispatch(institution_id=institution_id)
    logger.info(
        "Notifications flushed by %s: sent=%d, failed=%d",
        current_user.id,
        len(result.sent),
        len(result.failed),
    )
    return NotificationFlushResponse(sent=result.sent, failed=result.failed)
