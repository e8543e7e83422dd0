# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Periodic workflow jobs.

Each job is idempotent per tick: rerunning it after a crash only
finishes what the previous tick left behind.
"""

import logging

from src.domains.exam.service import ExamService
from src.infrastructure.database.connection import get_session, get_sessionmaker
from src.infrastructure.notifications.service import DispatchResult, get_notification_dispatcher

logger = logging.getLogger(__name__)


async def close_expired_exams_job() -> list[str]:
    """Lock approved exams whose grace window has elapsed."""
    async with get_session() as session:
        return await ExamService(session).close_expired()


async def dispatch_notifications_job() -> DispatchResult:
    """Deliver one batch of pending notifications."""
    return await get_notification_dispatcher().dispatch(get_sessionmaker())
