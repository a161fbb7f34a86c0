"""
Cooperative two-driver scheduler.

Runs on a single asyncio event loop:
    - tick driver: fixed period (nominal 16 ms), engine.tick()
    - frame driver: render-synchronized period, engine.frame(dt) with the
      measured elapsed time since the previous frame

Ticks and frames are synchronous, so cancellation can only land between
them; stopping never exposes a partial tick. Both drivers exit on their own
once the engine is shut down.
"""

import asyncio
from typing import Optional

from .engine import ForgeEngine
from .exceptions import StateTransitionError
from .utils.logger.logger import Logger


class ForgeScheduler:
    """
    Drives a ForgeEngine from two periodic asyncio tasks.
    """

    def __init__(
        self,
        engine: ForgeEngine,
        tick_s: Optional[float] = None,
        frame_s: float = 1.0 / 60.0
    ):
        """
        Args:
            engine: Engine to drive.
            tick_s: Tick period in seconds (defaults to the engine's timeline config).
            frame_s: Target frame period in seconds.
        """
        self.engine = engine
        self.tick_s = tick_s if tick_s is not None else engine.config.timeline.tick_s
        self.frame_s = frame_s
        if self.tick_s <= 0 or self.frame_s <= 0:
            raise ValueError("tick_s and frame_s must be positive")

        self._tasks: list[asyncio.Task] = []
        self.ticks_run = 0
        self.frames_run = 0

    @property
    def is_running(self) -> bool:
        """True while either driver task is still alive."""
        return any(not task.done() for task in self._tasks)

    async def start(self) -> None:
        """Start both drivers on the running loop."""
        if self.is_running:
            raise StateTransitionError("Scheduler already running.")
        self._tasks = [
            asyncio.create_task(self._tick_loop(), name="forge-tick"),
            asyncio.create_task(self._frame_loop(), name="forge-frame"),
        ]
        Logger.log(
            f"Scheduler started: tick={self.tick_s * 1000:.1f} ms, frame={self.frame_s * 1000:.1f} ms",
            Logger.LogPriority.INFO
        )

    async def stop(self) -> None:
        """Cancel both drivers and wait for them to finish."""
        if not self._tasks:
            raise StateTransitionError("Scheduler is not running.")
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        results = await asyncio.gather(*tasks, return_exceptions=True)
        Logger.log(
            f"Scheduler stopped after {self.ticks_run} ticks, {self.frames_run} frames",
            Logger.LogPriority.INFO
        )
        for result in results:
            if isinstance(result, Exception) and not isinstance(result, asyncio.CancelledError):
                raise result

    async def run_for(self, seconds: float) -> None:
        """Run both drivers for a wall-clock duration, then stop."""
        await self.start()
        try:
            await asyncio.sleep(seconds)
        finally:
            await self.stop()

    async def _tick_loop(self) -> None:
        loop = asyncio.get_running_loop()
        next_due = loop.time()
        while not self.engine.is_shut_down:
            self.engine.tick()
            self.ticks_run += 1
            next_due += self.tick_s
            await asyncio.sleep(max(0.0, next_due - loop.time()))
        Logger.log("Tick driver exiting: engine shut down", Logger.LogPriority.INFO)

    async def _frame_loop(self) -> None:
        loop = asyncio.get_running_loop()
        last = loop.time()
        while True:
            await asyncio.sleep(self.frame_s)
            if self.engine.is_shut_down:
                break
            now = loop.time()
            self.engine.frame(now - last)
            self.frames_run += 1
            last = now
