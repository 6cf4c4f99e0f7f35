"""
Cooperative pause/resume/cancel signalling for a research run.

The orchestration loop consults these flags only at batch boundaries. A
paused loop parks on a single-slot future which `resume()` or `cancel()`
releases exactly once.
"""

import asyncio
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class RunControl:
    """Flags and the suspended-continuation slot owned by one session."""

    def __init__(self):
        self.cancelled = False
        self.paused = False
        self._waiter: Optional[asyncio.Future] = None

    def reset(self) -> None:
        """Clear every flag and drop any stale continuation."""
        self.cancelled = False
        self.paused = False
        self._waiter = None

    @property
    def is_waiting(self) -> bool:
        return self._waiter is not None

    def pause(self) -> None:
        if not self.cancelled:
            self.paused = True

    def resume(self) -> None:
        self.paused = False
        self._release()

    def cancel(self) -> None:
        """Permanent for the run. Wakes a paused loop so it can observe it."""
        self.cancelled = True
        self.paused = False
        self._release()

    def _release(self) -> None:
        waiter, self._waiter = self._waiter, None
        if waiter is not None and not waiter.done():
            waiter.set_result(None)

    async def wait_for_resume(self) -> None:
        """Suspend until resume() or cancel() is called."""
        if self.cancelled or not self.paused:
            return
        self._waiter = asyncio.get_running_loop().create_future()
        logger.debug("Run paused, waiting for resume")
        await self._waiter
