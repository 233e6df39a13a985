"""Fixed-interval background tasks with an injectable clock.

A PeriodicTask wraps one async action (inbox poll, reminder sweep). Tests
call run_once() directly; services call start() and stop(). A failing run
is logged and the loop keeps going.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

from loguru import logger


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PeriodicTask:
    """
    Runs an async action every interval_seconds.

    Attributes:
        name: Task name for logs
        interval_seconds: Delay between runs
        runs: Completed runs (successful or failed)
        last_run_at: Clock time the last run started
        last_result: Return value of the last successful run
    """

    def __init__(
        self,
        name: str,
        action: Callable[[], Awaitable[Any]],
        interval_seconds: float,
        clock: Optional[Callable[[], datetime]] = None,
        run_immediately: bool = True,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self.name = name
        self.action = action
        self.interval_seconds = interval_seconds
        self.clock = clock or utc_now
        self.run_immediately = run_immediately

        self.runs = 0
        self.failures = 0
        self.last_run_at: Optional[datetime] = None
        self.last_result: Any = None
        self._task: Optional[asyncio.Task] = None
        self._run_lock = asyncio.Lock()
        self.logger = logger.bind(component=f"PeriodicTask:{name}")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> Any:
        """
        Run the action once. Overlapping calls are serialized.

        Returns:
            The action's result, or None when it raised
        """
        async with self._run_lock:
            self.last_run_at = self.clock()
            try:
                self.last_result = await self.action()
                return self.last_result
            except Exception as e:
                self.failures += 1
                self.logger.opt(exception=e).error("Periodic task {} failed", self.name)
                return None
            finally:
                self.runs += 1

    async def start(self) -> None:
        """Start the background loop."""
        if self.running:
            self.logger.warning(f"Periodic task {self.name} already running")
            return

        async def loop():
            if not self.run_immediately:
                await asyncio.sleep(self.interval_seconds)
            while True:
                try:
                    await self.run_once()
                    await asyncio.sleep(self.interval_seconds)
                except asyncio.CancelledError:
                    break

        self._task = asyncio.create_task(loop())
        self.logger.info(f"Periodic task {self.name} started (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        """Cancel the background loop and wait for it to finish."""
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self.logger.info(f"Periodic task {self.name} stopped")
        self._task = None
