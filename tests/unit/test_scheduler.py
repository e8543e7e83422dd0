# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the workflow scheduler."""

from datetime import timedelta
from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from src.infrastructure.background import scheduler as scheduler_module
from src.infrastructure.background.scheduler import (
    CLOSE_EXPIRED_INTERVAL_SECONDS,
    DISPATCH_INTERVAL_SECONDS,
    WorkflowScheduler,
    get_scheduler,
    start_scheduler,
    stop_scheduler,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def scheduler() -> WorkflowScheduler:
    return WorkflowScheduler()


@pytest_asyncio.fixture
async def singleton(monkeypatch) -> AsyncGenerator[None, None]:
    """Start every test with no process-wide scheduler."""
    monkeypatch.setattr(scheduler_module, "_scheduler", None)
    yield
    await stop_scheduler()


class TestRunTask:
    """Tests for WorkflowScheduler.run_task."""

    @pytest.mark.asyncio
    async def test_successful_run(self, scheduler: WorkflowScheduler) -> None:
        func = AsyncMock(return_value=[])
        task = scheduler.add_interval_task("sweep", func, seconds=60)

        await scheduler.run_task(task.id)
        await scheduler.run_task(task.id)

        assert func.await_count == 2
        assert task.run_count == 2
        assert task.error_count == 0
        assert task.last_run is not None

    @pytest.mark.asyncio
    async def test_failure_is_counted(self, scheduler: WorkflowScheduler) -> None:
        func = AsyncMock(side_effect=RuntimeError("database unavailable"))
        task = scheduler.add_interval_task("sweep", func, seconds=60)

        await scheduler.run_task(task.id)

        assert task.run_count == 0
        assert task.error_count == 1
        assert task.last_error == "database unavailable"
        assert task.last_run is not None

    @pytest.mark.asyncio
    async def test_disabled_task_is_skipped(self, scheduler: WorkflowScheduler) -> None:
        func = AsyncMock()
        task = scheduler.add_interval_task("sweep", func, seconds=60, enabled=False)

        await scheduler.run_task(task.id)
        await scheduler.run_task("unknown")

        func.assert_not_awaited()
        assert task.run_count == 0

    @pytest.mark.asyncio
    async def test_stats(self, scheduler: WorkflowScheduler) -> None:
        ok = scheduler.add_interval_task("ok", AsyncMock(), seconds=60)
        broken = scheduler.add_interval_task(
            "broken", AsyncMock(side_effect=ValueError("bad")), seconds=300
        )
        scheduler.add_interval_task("off", AsyncMock(), seconds=60, enabled=False)

        await scheduler.run_task(ok.id)
        await scheduler.run_task(broken.id)
        stats = scheduler.get_stats()

        assert stats["is_running"] is False
        assert stats["task_count"] == 3
        assert stats["enabled_count"] == 2
        assert stats["total_runs"] == 1
        assert stats["total_errors"] == 1
        assert {t["name"] for t in stats["tasks"]} == {"ok", "broken", "off"}


class TestLifecycle:
    """Tests for starting and stopping the scheduler."""

    @pytest.mark.asyncio
    async def test_start_registers_enabled_tasks(self, scheduler: WorkflowScheduler) -> None:
        enabled = scheduler.add_interval_task("on", AsyncMock(), seconds=60)
        scheduler.add_interval_task("off", AsyncMock(), seconds=60, enabled=False)

        await scheduler.start()
        try:
            jobs = scheduler._scheduler.get_jobs()
            assert scheduler.is_running
            assert [job.id for job in jobs] == [enabled.id]
            assert jobs[0].max_instances == 1
            assert jobs[0].coalesce is True
        finally:
            await scheduler.stop()

        assert not scheduler.is_running

    @pytest.mark.asyncio
    async def test_task_added_while_running(self, scheduler: WorkflowScheduler) -> None:
        await scheduler.start()
        try:
            task = scheduler.add_interval_task("late", AsyncMock(), seconds=30)
            assert scheduler._scheduler.get_job(task.id) is not None
        finally:
            await scheduler.stop()

    @pytest.mark.asyncio
    async def test_stop_when_not_running(self, scheduler: WorkflowScheduler) -> None:
        await scheduler.stop()

        assert not scheduler.is_running


class TestWorkflowSweeps:
    """Tests for start_scheduler and stop_scheduler."""

    @pytest.mark.asyncio
    async def test_registers_both_sweeps(self, singleton) -> None:
        scheduler = await start_scheduler()

        intervals = {
            job.name: job.trigger.interval for job in scheduler._scheduler.get_jobs()
        }
        assert intervals == {
            "close_expired_exams": timedelta(seconds=CLOSE_EXPIRED_INTERVAL_SECONDS),
            "dispatch_notifications": timedelta(seconds=DISPATCH_INTERVAL_SECONDS),
        }
        assert CLOSE_EXPIRED_INTERVAL_SECONDS == 300
        assert DISPATCH_INTERVAL_SECONDS == 60

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, singleton) -> None:
        first = await start_scheduler()
        second = await start_scheduler()

        assert first is second
        assert len(second.list_tasks()) == 2

    @pytest.mark.asyncio
    async def test_stop_resets_singleton(self, singleton) -> None:
        started = await start_scheduler()

        await stop_scheduler()

        assert not started.is_running
        assert get_scheduler() is not started
