"""Process-wide registry of per-attempt countdown tickers."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import logging

from quiz_live.constants.session_constants import TICK_INTERVAL_SECONDS
from quiz_live.core.models import LiveTimerSession

logger = logging.getLogger(__name__)

TickCallback = Callable[[LiveTimerSession], None]
ExpiryCallback = Callable[[LiveTimerSession], Awaitable[None]]


class TimerRegistry:
    """Runs at most one countdown task per attempt id.

    Starting a timer always cancels the previous one for the same attempt
    first. Ticks are scheduled against the event loop's monotonic clock, so
    the cached remaining time does not drift from wall-clock elapsed time by
    more than one tick.
    """

    def __init__(self, tick_interval: float = TICK_INTERVAL_SECONDS) -> None:
        self._tick_interval = tick_interval
        self._tasks: dict[int, asyncio.Task[None]] = {}

    def start(
        self,
        session: LiveTimerSession,
        on_tick: TickCallback,
        on_expire: ExpiryCallback,
    ) -> asyncio.Task[None]:
        attempt_id = session.attempt_id
        self.cancel(attempt_id)
        task = asyncio.create_task(
            self._countdown(session, on_tick, on_expire),
            name=f"attempt-timer-{attempt_id}",
        )
        self._tasks[attempt_id] = task
        task.add_done_callback(lambda finished: self._discard(attempt_id, finished))
        return task

    def cancel(self, attempt_id: int) -> bool:
        task = self._tasks.pop(attempt_id, None)
        if task is None:
            return False
        if not task.done() and task is not asyncio.current_task():
            task.cancel()
        return True

    def is_active(self, attempt_id: int) -> bool:
        return attempt_id in self._tasks

    def active_attempt_ids(self) -> list[int]:
        return list(self._tasks)

    async def cancel_all(self) -> None:
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _countdown(
        self,
        session: LiveTimerSession,
        on_tick: TickCallback,
        on_expire: ExpiryCallback,
    ) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        try:
            while session.remaining_seconds > 0:
                next_tick += self._tick_interval
                await asyncio.sleep(max(0.0, next_tick - loop.time()))
                session.remaining_seconds = max(0, session.remaining_seconds - 1)
                on_tick(session)
            # Expiry handling runs outside the registry; cancel() no longer reaches it.
            self._discard(session.attempt_id, asyncio.current_task())
            await on_expire(session)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Timer for attempt %s failed; removing it", session.attempt_id)

    def _discard(self, attempt_id: int, task: asyncio.Task[None] | None) -> None:
        if task is not None and self._tasks.get(attempt_id) is task:
            del self._tasks[attempt_id]
