"""Tests for StaleResponseGuard."""

import asyncio
from unittest.mock import MagicMock

import pytest

from campus_search.guard import StaleResponseGuard


def fake_clock(*times):
    """A clock returning the given times in order."""
    values = iter(times)
    return lambda: next(values)


class TestStaleResponseGuard:
    """Test issue-order acceptance."""

    def test_seeded_with_construction_time(self):
        """The last accepted time starts at construction time."""
        guard = StaleResponseGuard(clock=fake_clock(42.0))
        assert guard.last_accepted_issue_time == 42.0

    def test_track_returns_guard(self):
        """track() returns the guard for chaining."""
        guard = StaleResponseGuard()
        operation = asyncio.sleep(0)
        try:
            assert guard.track(operation) is guard
        finally:
            operation.close()

    def test_on_complete_without_operation_raises(self):
        """on_complete() needs a tracked operation."""
        guard = StaleResponseGuard()
        with pytest.raises(RuntimeError):
            guard.on_complete(MagicMock(), MagicMock())

    async def test_success_is_delivered(self):
        """A single successful operation reaches on_success."""
        guard = StaleResponseGuard()
        on_success = MagicMock()
        on_failure = MagicMock()

        async def operation():
            return ["result"]

        await guard.track(operation()).on_complete(on_success, on_failure)

        on_success.assert_called_once_with(["result"])
        on_failure.assert_not_called()

    async def test_older_success_after_newer_is_discarded(self):
        """A response to an older request never overwrites a newer one."""
        loop = asyncio.get_running_loop()
        guard = StaleResponseGuard(clock=fake_clock(0, 0, 10))
        op_a = loop.create_future()
        op_b = loop.create_future()
        success_a, failure_a = MagicMock(), MagicMock()
        success_b, failure_b = MagicMock(), MagicMock()

        task_a = guard.track(op_a).on_complete(success_a, failure_a)
        task_b = guard.track(op_b).on_complete(success_b, failure_b)

        op_b.set_result("B")
        await task_b
        assert guard.last_accepted_issue_time == 10
        success_b.assert_called_once_with("B")

        op_a.set_result("A")
        await task_a
        success_a.assert_not_called()
        failure_a.assert_not_called()
        assert guard.last_accepted_issue_time == 10

    async def test_success_handler_error_reaches_on_failure(self):
        """An exception from on_success is reported, not left in the task."""
        guard = StaleResponseGuard()
        error = ValueError("handler bug")
        on_success = MagicMock(side_effect=error)
        on_failure = MagicMock()

        async def operation():
            return ["result"]

        await guard.track(operation()).on_complete(on_success, on_failure)

        on_success.assert_called_once_with(["result"])
        on_failure.assert_called_once_with(error)

    async def test_older_failure_is_never_suppressed(self):
        """Failures reach on_failure even after a newer success was accepted."""
        loop = asyncio.get_running_loop()
        guard = StaleResponseGuard(clock=fake_clock(0, 0, 10))
        op_a = loop.create_future()
        op_b = loop.create_future()
        success_a, failure_a = MagicMock(), MagicMock()

        task_a = guard.track(op_a).on_complete(success_a, failure_a)
        task_b = guard.track(op_b).on_complete(MagicMock(), MagicMock())

        op_b.set_result("B")
        await task_b

        error = ConnectionError("timed out")
        op_a.set_exception(error)
        await task_a

        failure_a.assert_called_once_with(error)
        success_a.assert_not_called()
        assert guard.is_stale(0)

    async def test_in_order_completions_are_both_accepted(self):
        """Responses arriving in issue order are all applied."""
        loop = asyncio.get_running_loop()
        guard = StaleResponseGuard(clock=fake_clock(0, 1, 2))
        op_a = loop.create_future()
        op_b = loop.create_future()
        success_a, success_b = MagicMock(), MagicMock()

        task_a = guard.track(op_a).on_complete(success_a, MagicMock())
        task_b = guard.track(op_b).on_complete(success_b, MagicMock())

        op_a.set_result("A")
        await task_a
        op_b.set_result("B")
        await task_b

        success_a.assert_called_once_with("A")
        success_b.assert_called_once_with("B")
        assert guard.last_accepted_issue_time == 2

    async def test_equal_issue_times_are_accepted(self):
        """A tie with the last accepted time is accepted."""
        loop = asyncio.get_running_loop()
        guard = StaleResponseGuard(clock=fake_clock(5, 5, 5))
        op_a = loop.create_future()
        op_b = loop.create_future()
        success_a, success_b = MagicMock(), MagicMock()

        task_a = guard.track(op_a).on_complete(success_a, MagicMock())
        task_b = guard.track(op_b).on_complete(success_b, MagicMock())

        op_b.set_result("B")
        await task_b
        op_a.set_result("A")
        await task_a

        success_a.assert_called_once_with("A")
        success_b.assert_called_once_with("B")

    async def test_superseded_operation_still_runs(self):
        """Tracking a new operation does not cancel the previous one."""
        guard = StaleResponseGuard()
        finished = []

        async def slow():
            await asyncio.sleep(0.01)
            finished.append("slow")
            return "slow"

        async def fast():
            finished.append("fast")
            return "fast"

        task_slow = guard.track(slow()).on_complete(MagicMock(), MagicMock())
        task_fast = guard.track(fast()).on_complete(MagicMock(), MagicMock())
        await asyncio.gather(task_slow, task_fast)

        assert sorted(finished) == ["fast", "slow"]
