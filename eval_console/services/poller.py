"""
Run status poller - Evaluation Console
eval_console/services/poller.py

Re-fetches a pending/processing run on a fixed interval. Each scheduled
re-fetch is an asyncio.Task behind a PollHandle so it can be cancelled when
the user navigates away from the run or the navigator is closed.
"""

import asyncio
from typing import Awaitable, Callable, Optional

import structlog

logger = structlog.get_logger(__name__)

PollCallback = Callable[[str], Awaitable[None]]


class PollHandle:
    """One pending re-fetch of `run_id`."""

    def __init__(self, run_id: str, task: "asyncio.Task[None]"):
        self.run_id = run_id
        self.task = task

    @property
    def active(self) -> bool:
        return not self.task.done()

    def cancel(self) -> bool:
        """Cancel the re-fetch; a handle never cancels the task running it."""
        if self.task is asyncio.current_task() or self.task.done():
            return False
        self.task.cancel()
        return True

    def __repr__(self) -> str:
        return f"PollHandle(run_id={self.run_id!r}, active={self.active})"


class RunPoller:
    """Fixed-delay scheduler; at most one outstanding handle at a time."""

    def __init__(self, interval_seconds: float = 3.0):
        self.interval_seconds = interval_seconds
        self._handle: Optional[PollHandle] = None

    @property
    def handle(self) -> Optional[PollHandle]:
        return self._handle

    @property
    def is_polling(self) -> bool:
        return self._handle is not None and self._handle.active

    def schedule(self, run_id: str, callback: PollCallback) -> PollHandle:
        """Invoke `callback(run_id)` after the interval, replacing any earlier schedule."""
        self.cancel()
        task = asyncio.create_task(self._fire(run_id, callback))
        self._handle = PollHandle(run_id, task)
        logger.debug("poll_scheduled", run_id=run_id, delay=self.interval_seconds)
        return self._handle

    async def _fire(self, run_id: str, callback: PollCallback) -> None:
        await asyncio.sleep(self.interval_seconds)
        logger.debug("poll_fired", run_id=run_id)
        try:
            await callback(run_id)
        except Exception:
            logger.exception("poll_callback_failed", run_id=run_id)

    def cancel(self) -> None:
        if self._handle is None:
            return
        if self._handle.cancel():
            logger.debug("poll_cancelled", run_id=self._handle.run_id)
        self._handle = None

    async def wait(self) -> None:
        """Wait until no re-fetch is outstanding (each one may schedule the next)."""
        while self._handle is not None and self._handle.active:
            handle = self._handle
            try:
                await asyncio.shield(handle.task)
            except asyncio.CancelledError:
                if not handle.task.cancelled():
                    raise
