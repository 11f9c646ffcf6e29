"""In-memory fan-out of moderated content to second-screen viewers."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections import defaultdict
from typing import Any, Dict, Optional, Set

logger = logging.getLogger(__name__)

# Events buffered per viewer before new ones are dropped
MAX_PENDING_EVENTS = 100


def channel_name(conference_id: int) -> str:
    return f"conference-{conference_id}"


class Subscription:
    """One viewer's queue on a conference channel."""

    def __init__(
        self,
        broadcaster: "ConferenceBroadcaster",
        conference_id: int,
        loop: asyncio.AbstractEventLoop,
        max_pending: int = MAX_PENDING_EVENTS,
    ) -> None:
        self.conference_id = conference_id
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=max_pending)
        self._loop = loop
        self._broadcaster = broadcaster

    def deliver(self, message: Dict[str, Any]) -> None:
        # Publishers may run in worker threads; hand the message to the subscriber's loop
        self._loop.call_soon_threadsafe(self._offer, message)

    def _offer(self, message: Dict[str, Any]) -> None:
        try:
            self.queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(
                "Viewer queue full on %s, dropping %s", channel_name(self.conference_id), message["event"]
            )

    async def get(self) -> Dict[str, Any]:
        return await self.queue.get()

    def close(self) -> None:
        self._broadcaster.unsubscribe(self)


class ConferenceBroadcaster:
    def __init__(self, max_pending: int = MAX_PENDING_EVENTS) -> None:
        self._max_pending = max_pending
        self._subscribers: Dict[str, Set[Subscription]] = defaultdict(set)
        self._lock = threading.Lock()

    async def subscribe(self, conference_id: int) -> Subscription:
        subscription = Subscription(self, conference_id, asyncio.get_running_loop(), self._max_pending)
        with self._lock:
            self._subscribers[channel_name(conference_id)].add(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        key = channel_name(subscription.conference_id)
        with self._lock:
            subscribers = self._subscribers.get(key)
            if subscribers is None:
                return
            subscribers.discard(subscription)
            if not subscribers:
                del self._subscribers[key]

    def subscriber_count(self, conference_id: int) -> int:
        with self._lock:
            return len(self._subscribers.get(channel_name(conference_id), ()))

    def publish(self, conference_id: int, event: str, payload: Dict[str, Any]) -> None:
        """Deliver ``event`` to every subscriber. Never raises."""
        key = channel_name(conference_id)
        message = {"event": event, "payload": payload}
        with self._lock:
            subscribers = list(self._subscribers.get(key, ()))
        if not subscribers:
            logger.debug("No subscribers on %s for %s", key, event)
            return
        for subscription in subscribers:
            try:
                subscription.deliver(message)
            except Exception:
                # Closed loop or torn-down viewer
                logger.warning("Failed to deliver %s on %s", event, key, exc_info=True)
                self.unsubscribe(subscription)


_broadcaster: Optional[ConferenceBroadcaster] = None


def get_broadcaster() -> ConferenceBroadcaster:
    """Process-wide broadcaster instance."""
    global _broadcaster
    if _broadcaster is None:
        _broadcaster = ConferenceBroadcaster()
    return _broadcaster


def emit(broadcaster, conference_id: int, event: str, payload: Dict[str, Any]) -> None:
    """Publish from a domain operation; delivery problems never reach the caller."""
    if broadcaster is None:
        return
    try:
        broadcaster.publish(conference_id, event, payload)
    except Exception:
        logger.warning("Broadcast of %s for conference %s failed", event, conference_id, exc_info=True)
