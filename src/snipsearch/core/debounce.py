"""Trailing-edge debouncing on the asyncio event loop.

Every schedule() bumps a generation counter and restarts the timer, so only
the last request inside the window fires. A request that has already fired
is never cancelled; its owner compares the generation it was given against
``Debouncer.generation`` to decide whether the result is still wanted.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

logger = logging.getLogger(__name__)


class Debouncer:
    """Run an async callback once input has been quiet for delay_ms.

    Attributes:
        delay: Quiet window in seconds
    """

    def __init__(self, delay_ms: int, callback: Callable[[int], Awaitable[None]]):
        self.delay = delay_ms / 1000
        self._callback = callback
        self._generation = 0
        self._timer: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def pending(self) -> bool:
        """True while a timer is waiting to fire."""
        return self._timer is not None

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def schedule(self) -> int:
        """Restart the timer for a new request and return its generation.

        Must be called from inside a running event loop.
        """
        loop = asyncio.get_running_loop()
        generation = self.advance()
        self._timer = loop.call_later(self.delay, self._fire, generation)
        return generation

    def advance(self) -> int:
        """Supersede everything scheduled so far without starting a timer."""
        self.cancel()
        self._generation += 1
        return self._generation

    def cancel(self) -> None:
        """Drop the pending timer, if any. In-flight callbacks keep running."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self, generation: int) -> None:
        self._timer = None
        task = asyncio.get_running_loop().create_task(self._callback(generation))
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Debounced callback failed: {exc}", exc_info=exc)

    async def flush(self) -> None:
        """Fire a pending timer now and wait for every in-flight callback."""
        if self._timer is not None:
            self._timer.cancel()
            self._fire(self._generation)
        await self.wait()

    async def wait(self) -> None:
        """Wait for in-flight callbacks; pending timers are not awaited."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        self.cancel()
        await self.wait()
