import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger("countdown")

SleepFn = Callable[[float], Awaitable[None]]


class Countdown:
    """Single-shot per-second timer.

    ``on_tick`` receives the seconds left after each tick; ``on_expire`` runs
    once, after the last tick, unless the countdown was cancelled first.
    Both callbacks are plain functions: anything slow belongs in a task the
    callback schedules.
    """

    def __init__(
        self,
        label: str,
        duration: int,
        on_expire: Callable[[], None],
        on_tick: Callable[[int], None] | None = None,
        sleep: SleepFn = asyncio.sleep,
        interval: float = 1.0,
    ):
        self.label = label
        self.duration = max(0, int(duration))
        self.remaining = self.duration
        self.ticks = 0
        self.expired = False
        self.cancelled = False
        self._on_expire = on_expire
        self._on_tick = on_tick
        self._sleep = sleep
        self._interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> "Countdown":
        if self._task is not None:
            raise RuntimeError(f"countdown {self.label} already started")
        self._task = asyncio.create_task(self._run(), name=f"countdown:{self.label}")
        return self

    async def _run(self):
        while self.remaining > 0:
            await self._sleep(self._interval)
            if self.cancelled:
                return
            self.remaining -= 1
            self.ticks += 1
            if self._on_tick is not None:
                self._on_tick(self.remaining)

        if self.cancelled:
            return
        self.expired = True
        logger.info("countdown %s expired after %s ticks", self.label, self.ticks)
        self._on_expire()

    def cancel(self):
        if self.expired or self.cancelled:
            return
        self.cancelled = True
        if self._task is not None and self._task is not asyncio.current_task():
            self._task.cancel()

    async def wait(self):
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass
