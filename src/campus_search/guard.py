"""
Stale response suppression for overlapping asynchronous requests.

Interactive autocomplete issues a request per keystroke. A fast response to
an old keystroke can arrive after a slow response to a newer one; applying
the old one last would show suggestions for text the user has already
changed. A guard only lets a success through when its request was issued no
earlier than the last success it accepted.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)


class StaleResponseGuard:
    """
    Applies successes in issue order, never completion order.

    One guard per input control. Superseded operations are not cancelled;
    they run to completion and their results are discarded.

    Failures always reach `on_failure`, even when a later request has already
    been accepted, so failure handlers must tolerate being called for a
    request the user has moved past (see `is_stale`). An exception raised by
    `on_success` is also passed to `on_failure`.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """
        Initialize the guard.

        Args:
            clock: Source of issue times; must never go backwards
        """
        self._clock = clock
        self._operation: Awaitable[Any] | None = None
        self.last_accepted_issue_time = clock()

    def track(self, operation: Awaitable[Any]) -> "StaleResponseGuard":
        """Set the operation that the next `on_complete` call will handle."""
        self._operation = operation
        return self

    def on_complete(
        self,
        on_success: Callable[[Any], Any],
        on_failure: Callable[[BaseException], Any],
    ) -> asyncio.Task:
        """
        Handle the tracked operation once it completes.

        The issue time is captured now, at call time. Returns the task
        awaiting the operation so callers can wait for it.
        """
        if self._operation is None:
            raise RuntimeError("No operation is being tracked")

        operation, self._operation = self._operation, None
        issue_time = self._clock()
        return asyncio.ensure_future(
            self._settle(operation, issue_time, on_success, on_failure)
        )

    def is_stale(self, issue_time: float) -> bool:
        """True if a request issued at `issue_time` has been superseded."""
        return issue_time < self.last_accepted_issue_time

    async def _settle(
        self,
        operation: Awaitable[Any],
        issue_time: float,
        on_success: Callable[[Any], Any],
        on_failure: Callable[[BaseException], Any],
    ) -> None:
        try:
            value = await operation
        except Exception as e:
            on_failure(e)
            return

        # Single event loop: the compare and the advance cannot interleave
        if issue_time >= self.last_accepted_issue_time:
            self.last_accepted_issue_time = issue_time
            try:
                on_success(value)
            except Exception as e:
                logger.exception("Success handler failed")
                on_failure(e)
        else:
            logger.debug(
                f"Discarding stale response issued at {issue_time} "
                f"(last accepted {self.last_accepted_issue_time})"
            )
