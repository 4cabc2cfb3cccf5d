"""
Tests for src/services/task_dispatch.py - fire-and-forget background tasks.
"""
import asyncio

from unittest.mock import AsyncMock, patch

from src.services.task_dispatch import TaskRunner
from src.utils.alerting import AlertType


class TestDispatch:
    async def test_runs_task_in_background(self):
        runner = TaskRunner()
        job = AsyncMock(return_value="done")

        task = runner.dispatch("job", job, 1, key="v")
        assert runner.in_flight == 1

        result = await task
        assert result == "done"
        job.assert_awaited_once_with(1, key="v")
        assert runner.completed_count == 1
        assert runner.in_flight == 0

    async def test_dispatch_does_not_wait(self):
        runner = TaskRunner()
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow():
            started.set()
            await release.wait()

        task = runner.dispatch("slow", slow)
        assert not task.done()
        await started.wait()
        release.set()
        await task

    async def test_failure_is_contained_and_alerted(self):
        runner = TaskRunner()
        job = AsyncMock(side_effect=RuntimeError("smtp down"))

        with patch("src.services.task_dispatch.send_alert", new_callable=AsyncMock) as mock_alert:
            task = runner.dispatch("notify_upgrade", job, alert_type=AlertType.EMAIL_NOTIFY_FAILED)
            result = await task

        assert result is None
        assert runner.failed_count == 1
        mock_alert.assert_awaited_once()
        assert mock_alert.call_args.args[0] == AlertType.EMAIL_NOTIFY_FAILED
        assert "smtp down" in mock_alert.call_args.args[1]

    async def test_default_alert_type(self):
        runner = TaskRunner()
        job = AsyncMock(side_effect=ValueError("bad"))

        with patch("src.services.task_dispatch.send_alert", new_callable=AsyncMock) as mock_alert:
            await runner.dispatch("job", job)

        assert mock_alert.call_args.args[0] == AlertType.BACKGROUND_TASK_FAILED


class TestDrain:
    async def test_drain_with_nothing_in_flight(self):
        await TaskRunner().drain()

    async def test_drain_waits_for_tasks(self):
        runner = TaskRunner()
        job = AsyncMock(return_value=None)
        runner.dispatch("job", job)

        await runner.drain(timeout=1.0)

        job.assert_awaited_once()
        assert runner.in_flight == 0

    async def test_drain_cancels_stragglers(self):
        runner = TaskRunner()

        async def forever():
            await asyncio.Event().wait()

        task = runner.dispatch("forever", forever)
        await asyncio.sleep(0)

        await runner.drain(timeout=0.01)

        assert task.cancelled()
