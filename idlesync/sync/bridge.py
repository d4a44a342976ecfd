"""
Event Bridge: funnels datagram, timer and power events into one queue.

A single dispatcher task drains the queue, so the controller never sees two
events at once no matter which thread or callback produced them.
"""

import asyncio
import logging
from typing import Callable

from idlesync.sync.models import SyncEvent

logger = logging.getLogger(__name__)


class EventBridge:
    """Serializes events onto the running loop and schedules recurring ones."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue = asyncio.Queue()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._handler: Callable[[SyncEvent], None] | None = None
        self._dispatch_task: asyncio.Task | None = None
        self._timers: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return self._dispatch_task is not None and not self._dispatch_task.done()

    def start(self, handler: Callable[[SyncEvent], None]) -> None:
        """Begin dispatching to ``handler``. Must be called on the loop."""
        self._loop = asyncio.get_running_loop()
        self._handler = handler
        self._dispatch_task = asyncio.create_task(self._dispatch_loop())

    async def stop(self) -> None:
        tasks = list(self._timers)
        if self._dispatch_task:
            tasks.append(self._dispatch_task)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._timers.clear()
        self._dispatch_task = None

    async def join(self) -> None:
        """Wait until every queued event has been handled."""
        await self._queue.join()

    async def wait_closed(self) -> None:
        """Block until the dispatcher stops."""
        if self._dispatch_task:
            await asyncio.gather(self._dispatch_task, return_exceptions=True)

    def submit(self, event: SyncEvent) -> None:
        """Queue an event from code already running on the loop."""
        self._queue.put_nowait(event)

    def submit_threadsafe(self, event: SyncEvent) -> None:
        """Queue an event from another thread."""
        if self._loop is None:
            raise RuntimeError("EventBridge is not started")
        self._loop.call_soon_threadsafe(self._queue.put_nowait, event)

    def call_every(self, interval: float, event: SyncEvent) -> asyncio.Task:
        """Submit ``event`` every ``interval`` seconds, first one period from now."""
        task = asyncio.create_task(self._repeat(interval, event))
        self._timers.append(task)
        return task

    async def _repeat(self, interval: float, event: SyncEvent) -> None:
        while True:
            await asyncio.sleep(interval)
            self.submit(event)

    async def _dispatch_loop(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                self._handler(event)
            except Exception:
                logger.exception(f"Failed to handle {event.kind} event")
            finally:
                self._queue.task_done()
