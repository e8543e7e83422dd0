# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Background sweeps for the assessment workflow.

Two periodic jobs run in-process on fixed intervals:
- close_expired_exams: every 5 minutes, locks approved exams past their
  grace window
- dispatch_notifications: every 60 seconds, delivers pending outbox rows

Scheduler:
    from src.infrastructure.background import start_scheduler, stop_scheduler

    # Start scheduler with the workflow sweeps
    await start_scheduler()

    # Stop at shutdown
    await stop_scheduler()
"""

from src.infrastructure.background.jobs import (
    close_expired_exams_job,
    dispatch_notifications_job,
)
from src.infrastructure.background.scheduler import (
    CLOSE_EXPIRED_INTERVAL_SECONDS,
    DISPATCH_INTERVAL_SECONDS,
    ScheduledTask,
    WorkflowScheduler,
    get_scheduler,
    start_scheduler,
    stop_scheduler,
)

__all__ = [
    "WorkflowScheduler",
    "ScheduledTask",
    "get_scheduler",
    "start_scheduler",
    "stop_scheduler",
    "CLOSE_EXPIRED_INTERVAL_SECONDS",
    "DISPATCH_INTERVAL_SECONDS",
    "close_expired_exams_job",
    "dispatch_notifications_job",
]
