"""Minimum spacing between consecutive thoughts of a session."""
import asyncio
import time
from typing import Awaitable, Callable, Optional

from seqthink.utils.logging import get_logger

logger = get_logger(__name__)


class PacingGate:
    """Delay a thought until ``min_interval_ms`` has passed since the last one.

    The gate only ever waits; it never raises and never retries.
    """

    def __init__(
        self,
        min_interval_ms: int = 2000,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.min_interval = max(0, min_interval_ms) / 1000.0
        self.clock = clock
        self.sleep = sleep

    def now(self) -> float:
        return self.clock()

    def remaining(self, last_timestamp: Optional[float]) -> float:
        """Seconds still to wait before the next thought may start."""
        if last_timestamp is None:
            return 0.0
        elapsed = self.clock() - last_timestamp
        return max(0.0, self.min_interval - elapsed)

    async def wait(self, last_timestamp: Optional[float]) -> float:
        """Suspend until the interval has elapsed; return the seconds waited."""
        delay = self.remaining(last_timestamp)
        if delay > 0:
            logger.debug("pacing_wait", delay_ms=round(delay * 1000))
            await self.sleep(delay)
        return delay
