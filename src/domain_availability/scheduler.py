"""
Fixed-interval background task runner.

Used by the TLD registry to refresh its server map periodically while the
process is alive.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from .audit_logger import AuditLogger


class PeriodicTask:
    """
    Awaits ``callback`` every ``interval_seconds`` until stopped.

    The first run happens one interval after ``start()``. Exceptions raised
    by the callback are logged and the loop keeps going.
    """

    def __init__(
        self,
        name: str,
        interval_seconds: float,
        callback: Callable[[], Awaitable[object]],
        logger: Optional[AuditLogger] = None,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._name = name
        self._interval = interval_seconds
        self._callback = callback
        self._logger = logger
        self._task: Optional[asyncio.Task] = None
        self._run_count = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def run_count(self) -> int:
        """Number of completed callback invocations, failed ones included."""
        return self._run_count

    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """
        Start the loop on the running event loop.

        Calling start() on a running task returns the existing asyncio task.
        """
        if self.is_running():
            return self._task
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self._name)
        return self._task

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self._callback()
            except Exception as e:
                if self._logger is not None:
                    self._logger.log_error("scheduler", f"Periodic task '{self._name}' failed", error=e)
            finally:
                self._run_count += 1
