"""
Quiz countdown and the auto-submit scheduler
"""
import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Dict, Optional

from nokhba.utils.clock import utcnow

logger = logging.getLogger(__name__)


def format_remaining(seconds: int) -> str:
    """Render seconds as m:ss"""
    seconds = max(seconds, 0)
    return f"{seconds // 60}:{seconds % 60:02d}"


class QuizTimer:
    """
    Countdown over whole seconds since the attempt started.

    Remaining time is derived from the wall clock rather than decremented,
    so a tick can never be counted twice and it never goes below zero.
    """

    def __init__(
        self,
        duration_seconds: int,
        started_at: datetime,
        clock: Callable[[], datetime] = utcnow
    ):
        self.duration_seconds = duration_seconds
        self.started_at = started_at
        self._clock = clock

    @classmethod
    def for_minutes(cls, minutes: int, started_at: datetime, clock: Callable[[], datetime] = utcnow) -> "QuizTimer":
        return cls(minutes * 60, started_at, clock)

    def elapsed_seconds(self, now: Optional[datetime] = None) -> int:
        now = now or self._clock()
        return max(int((now - self.started_at).total_seconds()), 0)

    def remaining_seconds(self, now: Optional[datetime] = None) -> int:
        return max(self.duration_seconds - self.elapsed_seconds(now), 0)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.remaining_seconds(now) == 0


class AutoSubmitScheduler:
    """
    Fires a callback when an attempt's deadline passes.

    One pending task per attempt; `cancel` is called on submission so the
    countdown stops as soon as the attempt closes.
    """

    def __init__(self):
        self._tasks: Dict[str, asyncio.Task] = {}

    def schedule(
        self,
        attempt_id: str,
        delay_seconds: float,
        callback: Callable[[str], Awaitable[None]]
    ) -> None:
        self.cancel(attempt_id)
        task = asyncio.get_running_loop().create_task(
            self._run(attempt_id, delay_seconds, callback)
        )
        self._tasks[attempt_id] = task
        logger.info(f"Auto-submit scheduled for attempt {attempt_id} in {delay_seconds:.0f}s")

    async def _run(self, attempt_id: str, delay_seconds: float, callback) -> None:
        try:
            await asyncio.sleep(delay_seconds)
            await callback(attempt_id)
        except asyncio.CancelledError:
            logger.debug(f"Auto-submit cancelled for attempt {attempt_id}")
            raise
        except Exception as e:
            logger.error(f"Auto-submit failed for attempt {attempt_id}: {str(e)}", exc_info=True)
        finally:
            if self._tasks.get(attempt_id) is asyncio.current_task():
                del self._tasks[attempt_id]

    def cancel(self, attempt_id: str) -> bool:
        task = self._tasks.pop(attempt_id, None)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    def pending(self) -> int:
        return len(self._tasks)

    def cancel_all(self) -> None:
        for attempt_id in list(self._tasks):
            self.cancel(attempt_id)


# Global instance
auto_submit_scheduler = AutoSubmitScheduler()
