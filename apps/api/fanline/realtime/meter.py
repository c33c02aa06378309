from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from decimal import Decimal
from typing import Awaitable, Callable, Optional

from fanline.core.errors import ValidationError
from fanline.services.money import session_charge

logger = logging.getLogger(__name__)

TickCallback = Callable[[int, str, Decimal], Awaitable[None]]


def format_time(seconds: int) -> str:
    if seconds is None or seconds < 0:
        raise ValidationError("seconds must be >= 0")
    seconds = int(seconds)
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def running_cost(elapsed_seconds, hourly_rate) -> Decimal:
    return session_charge(elapsed_seconds, hourly_rate)


def elapsed_exact(start: datetime, end: datetime) -> Decimal:
    """Seconds from start to end to the microsecond, never negative. Billing uses this."""
    delta = end - start
    seconds = Decimal(delta.days * 86400 + delta.seconds) + Decimal(delta.microseconds) / Decimal(1_000_000)
    return max(Decimal(0), seconds)


def elapsed_between(start: datetime, end: datetime) -> int:
    """Whole seconds from start to end, never negative. Display only."""
    return int(elapsed_exact(start, end))


class ElapsedMeter:
    """
    Local one-second ticker for an open chat session.

    The counter is seeded once from (now - session_start) and then only
    incremented locally; it is not re-synchronised with the server clock.
    """

    def __init__(
        self,
        hourly_rate,
        on_tick: TickCallback,
        *,
        initial_elapsed: int = 0,
        interval: float = 1.0,
    ):
        if initial_elapsed < 0:
            raise ValidationError("initial_elapsed must be >= 0")
        self.hourly_rate = hourly_rate
        self.elapsed = int(initial_elapsed)
        self.interval = interval
        self._on_tick = on_tick
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def snapshot(self):
        return self.elapsed, format_time(self.elapsed), running_cost(self.elapsed, self.hourly_rate)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.elapsed += 1
            try:
                await self._on_tick(*self.snapshot())
            except Exception as e:
                logger.warning("meter stopped, tick delivery failed: %s: %s", type(e).__name__, e)
                return

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def wait_stopped(self) -> None:
        task = self._task
        self.stop()
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass
