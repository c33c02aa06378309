from __future__ import annotations

import asyncio
import logging
from threading import Lock
from typing import Dict, List, Optional

from fanline.realtime.events import Event

logger = logging.getLogger(__name__)

_QUEUE_MAXSIZE = 100

# Sentinel pushed into a queue when the subscription (or the whole bus) closes.
_CLOSED = object()


class Subscription:
    """
    Handle for one subscriber on one topic.

    Events are delivered in publish order. Use as a context manager (sync or
    async) so the handle is always removed from the bus on teardown.
    """

    def __init__(self, bus: "EventBus", topic: str, loop: asyncio.AbstractEventLoop, maxsize: int):
        self.topic = topic
        self._bus = bus
        self._loop = loop
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    def _offer(self, item) -> None:
        try:
            self._queue.put_nowait(item)
        except asyncio.QueueFull:
            logger.warning("dropping event for slow subscriber on %s", self.topic)

    def deliver(self, event: Event) -> None:
        if self.closed:
            return
        try:
            self._loop.call_soon_threadsafe(self._offer, event)
        except RuntimeError:
            # subscriber loop already shut down
            self.closed = True

    async def get(self, timeout: Optional[float] = None) -> Optional[Event]:
        """Next event, or None once closed (or when the timeout elapses)."""
        if self.closed and self._queue.empty():
            return None
        try:
            if timeout is None:
                item = await self._queue.get()
            else:
                item = await asyncio.wait_for(self._queue.get(), timeout)
        except asyncio.TimeoutError:
            return None
        if item is _CLOSED:
            self.closed = True
            return None
        return item

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._bus._remove(self)
        try:
            self._loop.call_soon_threadsafe(self._offer, _CLOSED)
        except RuntimeError:
            pass

    def __aiter__(self):
        return self

    async def __anext__(self) -> Event:
        event = await self.get()
        if event is None:
            raise StopAsyncIteration
        return event

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self.close()


class EventBus:
    def __init__(self, maxsize: int = _QUEUE_MAXSIZE):
        self._subscribers: Dict[str, List[Subscription]] = {}
        self._lock = Lock()
        self._maxsize = maxsize

    def subscribe(self, topic: str) -> Subscription:
        """Must be called from the event loop that will consume the events."""
        sub = Subscription(self, topic, asyncio.get_running_loop(), self._maxsize)
        with self._lock:
            self._subscribers.setdefault(topic, []).append(sub)
        return sub

    def publish(self, topic: str, event: Event) -> int:
        """Fan out to current subscribers. Returns the number of handles reached."""
        with self._lock:
            subs = list(self._subscribers.get(topic, []))
        for sub in subs:
            sub.deliver(event)
        return len(subs)

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._subscribers.get(topic, []))

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            subs = self._subscribers.get(sub.topic)
            if not subs:
                return
            if sub in subs:
                subs.remove(sub)
            if not subs:
                self._subscribers.pop(sub.topic, None)

    def close(self) -> None:
        with self._lock:
            subs = [s for topic_subs in self._subscribers.values() for s in topic_subs]
            self._subscribers.clear()
        for sub in subs:
            sub.close()
