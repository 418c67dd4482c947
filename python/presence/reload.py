from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import AsyncIterator

from watchfiles import awatch

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ReloadNotifier:
    """Fans out ``reload`` server-sent events when files under ``directory`` change."""

    directory: str
    _subscribers: set[asyncio.Queue[str]] = field(default_factory=set)
    _watch_task: asyncio.Task[None] | None = None
    _stop: asyncio.Event = field(default_factory=asyncio.Event)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def start(self) -> None:
        if self._watch_task is not None:
            return
        self._stop.clear()
        self._watch_task = asyncio.create_task(self._watch())

    async def close(self) -> None:
        self._stop.set()
        if self._watch_task is not None:
            self._watch_task.cancel()
            try:
                await self._watch_task
            except asyncio.CancelledError:
                pass
            self._watch_task = None

    def subscribe(self) -> asyncio.Queue[str]:
        queue: asyncio.Queue[str] = asyncio.Queue()
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[str]) -> None:
        self._subscribers.discard(queue)

    def notify(self) -> None:
        for queue in list(self._subscribers):
            queue.put_nowait("reload")

    async def stream(self) -> AsyncIterator[str]:
        queue = self.subscribe()
        stop = asyncio.ensure_future(self._stop.wait())
        try:
            yield "retry: 1000\n\n"
            while not self._stop.is_set():
                get = asyncio.ensure_future(queue.get())
                try:
                    await asyncio.wait({get, stop}, return_when=asyncio.FIRST_COMPLETED)
                finally:
                    get.cancel()
                if get.done() and not get.cancelled():
                    yield f"data: {get.result()}\n\n"
        finally:
            stop.cancel()
            self.unsubscribe(queue)

    async def _watch(self) -> None:
        try:
            async for _changes in awatch(self.directory, stop_event=self._stop):
                self.notify()
        except Exception:
            logger.exception("failed to watch %s", self.directory)
