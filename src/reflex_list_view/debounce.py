"""Cancellable delayed tasks for collapsing bursts of input."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any


class Debouncer:
    """Run ``callback(*args)`` once input has been quiet for ``delay`` seconds.

    Every :meth:`trigger` cancels the pending call and starts a new timer.
    Once the delay has elapsed the call is no longer cancellable by a new
    trigger; it runs to completion while the next timer starts.
    :meth:`cancel` is idempotent.

    Must be triggered from inside a running event loop.
    """

    def __init__(self, delay: float, callback: Callable[..., Awaitable[Any]]) -> None:
        self.delay = delay
        self.callback = callback
        self._task: asyncio.Task[Any] | None = None
        self._armed: bool = False

    @property
    def pending(self) -> bool:
        return self._armed

    def trigger(self, *args: Any) -> None:
        self.cancel()
        self._armed = True
        self._task = asyncio.get_running_loop().create_task(self._run(args))

    async def _run(self, args: tuple[Any, ...]) -> None:
        await asyncio.sleep(self.delay)
        self._armed = False
        await self.callback(*args)

    def cancel(self) -> None:
        if self._armed and self._task is not None and not self._task.done():
            self._task.cancel()
        self._armed = False

    async def wait(self) -> None:
        """Wait for the latest triggered call to finish (no-op if cancelled)."""
        task = self._task
        if task is None or task.cancelled():
            return
        try:
            await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
