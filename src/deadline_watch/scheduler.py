"""Alert scheduler - periodic scan of stored deadlines."""

import asyncio
from datetime import datetime
from typing import Callable, Optional

from .notifier import Notifier, deadline_due_title
from .observability import logger
from .store import DeadlineStore


# Alert when 0 < minutes remaining <= ALERT_WINDOW_MINUTES
ALERT_WINDOW_MINUTES = 120
TICK_SECONDS = 60


def in_alert_window(minutes_left: int) -> bool:
    """True if a deadline this many minutes away should alert now."""
    return 0 < minutes_left <= ALERT_WINDOW_MINUTES


def seconds_until_next_tick(now: datetime) -> float:
    """Seconds until the next wall-clock minute boundary."""
    elapsed = now.second + now.microsecond / 1_000_000
    return TICK_SECONDS - elapsed


class AlertScheduler:
    """
    Fires one alert per deadline once it enters the alert window.

    Every tick walks the pending records in insertion order. A record is
    alerted and marked notified before the next one is looked at; once
    notified it is never considered again. Records that are already past,
    that were never seen inside the window, or that carry no time do not
    alert.
    """

    def __init__(
        self,
        store: DeadlineStore,
        notifier: Notifier,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.notifier = notifier
        self.clock = clock

    async def tick(self, now: Optional[datetime] = None) -> int:
        """
        Run one scan.

        Returns:
            Number of alerts fired
        """
        now = now or self.clock()
        fired = 0

        for record in self.store.pending():
            if not record.is_scheduled:
                continue
            minutes_left = record.minutes_until(now)
            if not in_alert_window(minutes_left):
                continue

            await self.notifier.fire(deadline_due_title(minutes_left), record.message)
            self.store.mark_notified(record)
            fired += 1

        if fired:
            logger.info(f"Tick at {now.isoformat(timespec='minutes')}: {fired} alerts fired")
        else:
            logger.debug(f"Tick at {now.isoformat(timespec='minutes')}: nothing due")
        return fired

    async def run_forever(self, guard: Optional[asyncio.Lock] = None):
        """
        Tick at every minute boundary until cancelled.

        Ticks never overlap: the next sleep starts only after the previous
        tick returns. A guard lock, when given, is held for the whole tick.
        """
        guard = guard or asyncio.Lock()
        while True:
            await asyncio.sleep(seconds_until_next_tick(self.clock()))
            try:
                async with guard:
                    await self.tick()
            except OSError as e:
                logger.error(f"Tick aborted, deadline file not written: {e}")
