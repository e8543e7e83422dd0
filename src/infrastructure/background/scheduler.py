# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Scheduler for the periodic workflow sweeps.

Uses APScheduler's AsyncIOScheduler inside the API process. Each task
runs with ``max_instances=1`` and ``coalesce=True``, so a slow tick is
never overlapped by the next one and missed ticks collapse into one run.

Example:
    from src.infrastructure.background.scheduler import get_scheduler

    scheduler = get_scheduler()

    # Add interval job (runs every 60 seconds)
    scheduler.add_interval_task(
        name="dispatch_notifications",
        func=dispatch_notifications_job,
        seconds=60,
    )

    # Start scheduler
    await scheduler.start()
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable
from uuid import uuid4

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

CLOSE_EXPIRED_INTERVAL_SECONDS = 300
DISPATCH_INTERVAL_SECONDS = 60


@dataclass
class ScheduledTask:
    """Configuration for a scheduled coroutine.

    Attributes:
        id: Unique task identifier.
        name: Human-readable task name.
        func: Coroutine function run on every tick.
        interval_seconds: Seconds between ticks.
        enabled: Whether the task is enabled.
        last_run: Last run timestamp.
        run_count: Total number of successful runs.
        error_count: Number of failed runs.
        last_error: Message of the most recent failure.
    """

    name: str
    func: Callable[[], Awaitable[Any]]
    interval_seconds: int
    id: str = field(default_factory=lambda: str(uuid4()))
    enabled: bool = True
    last_run: datetime | None = None
    run_count: int = 0
    error_count: int = 0
    last_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "interval_seconds": self.interval_seconds,
            "enabled": self.enabled,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "run_count": self.run_count,
            "error_count": self.error_count,
            "last_error": self.last_error,
        }


class WorkflowScheduler:
    """Process-lifetime owner of the periodic sweeps.

    Attributes:
        _scheduler: APScheduler instance while running.
        _tasks: Dictionary of scheduled tasks.
        _running: Whether scheduler is running.
    """

    def __init__(self) -> None:
        self._scheduler: AsyncIOScheduler | None = None
        self._tasks: dict[str, ScheduledTask] = {}
        self._running = False

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._running

    def add_interval_task(
        self,
        name: str,
        func: Callable[[], Awaitable[Any]],
        seconds: int,
        enabled: bool = True,
    ) -> ScheduledTask:
        """Add an interval-scheduled task.

        Tasks added before start() are registered with APScheduler when
        the scheduler starts.

        Args:
            name: Task name.
            func: Coroutine function to run.
            seconds: Interval seconds.
            enabled: Whether task is enabled.

        Returns:
            Created ScheduledTask.
        """
        task = ScheduledTask(name=name, func=func, interval_seconds=seconds, enabled=enabled)
        self._tasks[task.id] = task

        if self._scheduler and enabled:
            self._add_job(task)

        logger.info("Added interval task: %s (every %ds)", name, seconds)
        return task

    def _add_job(self, task: ScheduledTask) -> None:
        self._scheduler.add_job(
            self.run_task,
            trigger=IntervalTrigger(seconds=task.interval_seconds),
            args=[task.id],
            id=task.id,
            name=task.name,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )

    async def run_task(self, task_id: str) -> None:
        """Run one tick of a task.

        Failures are counted and logged; the next tick runs as scheduled.

        Args:
            task_id: ID of the task to execute.
        """
        task = self._tasks.get(task_id)
        if not task or not task.enabled:
            return

        logger.debug("Executing scheduled task: %s", task.name)

        try:
            await task.func()
        except Exception as e:
            task.error_count += 1
            task.last_error = str(e)
            logger.error("Scheduled task %s failed: %s", task.name, str(e), exc_info=True)
            return
        finally:
            task.last_run = utc_now()

        task.run_count += 1

    def list_tasks(self) -> list[ScheduledTask]:
        return list(self._tasks.values())

    async def start(self) -> None:
        """Start the scheduler."""
        if self._running:
            return

        self._scheduler = AsyncIOScheduler(timezone="UTC")
        for task in self._tasks.values():
            if task.enabled:
                self._add_job(task)
        self._scheduler.start()
        self._running = True

        logger.info("Workflow scheduler started with %d tasks", len(self._tasks))

    async def stop(self) -> None:
        """Stop the scheduler."""
        if not self._running:
            return

        if self._scheduler:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None

        self._running = False
        logger.info("Workflow scheduler stopped")

    def get_stats(self) -> dict[str, Any]:
        """Get scheduler statistics.

        Returns:
            Statistics dictionary.
        """
        return {
            "is_running": self._running,
            "task_count": len(self._tasks),
            "enabled_count": sum(1 for t in self._tasks.values() if t.enabled),
            "total_runs": sum(t.run_count for t in self._tasks.values()),
            "total_errors": sum(t.error_count for t in self._tasks.values()),
            "tasks": [t.to_dict() for t in self._tasks.values()],
        }


# Singleton instance
_scheduler: WorkflowScheduler | None = None


def get_scheduler() -> WorkflowScheduler:
    """Get the singleton scheduler instance.

    Returns:
        WorkflowScheduler instance.
    """
    global _scheduler
    if _scheduler is None:
        _scheduler = WorkflowScheduler()
    return _scheduler


async def start_scheduler() -> WorkflowScheduler:
    """Start the scheduler and register the workflow sweeps.

    Returns:
        Started scheduler instance.
    """
    from src.infrastructure.background.jobs import (
        close_expired_exams_job,
        dispatch_notifications_job,
    )

    scheduler = get_scheduler()
    if scheduler.is_running:
        return scheduler

    if not scheduler.list_tasks():
        scheduler.add_interval_task(
            name="close_expired_exams",
            func=close_expired_exams_job,
            seconds=CLOSE_EXPIRED_INTERVAL_SECONDS,
        )
        scheduler.add_interval_task(
            name="dispatch_notifications",
            func=dispatch_notifications_job,
            seconds=DISPATCH_INTERVAL_SECONDS,
        )

    await scheduler.start()
    return scheduler


async def stop_scheduler() -> None:
    """Stop the singleton scheduler if it is running."""
    global _scheduler
    if _scheduler is not None:
        await _scheduler.stop()
        _scheduler = None
