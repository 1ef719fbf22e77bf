"""
In-process change feed for realtime client updates
"""
import asyncio
import logging
import threading
from collections import defaultdict
from typing import Any, Dict, Optional, Set

logger = logging.getLogger(__name__)


class Subscription:
    """
    Cancellable stream of payloads published on one topic

    Usage:
        sub = change_feed.subscribe("progress:uid")
        async for payload in sub:
            ...
        sub.close()
    """

    def __init__(self, feed: "ChangeFeed", topic: str, max_pending: int):
        self.topic = topic
        self._feed = feed
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_pending)
        self.closed = False

    def _offer(self, payload: Any) -> None:
        try:
            self._queue.put_nowait(payload)
        except asyncio.QueueFull:
            logger.warning(f"Subscriber on {self.topic} is lagging, update dropped")

    def deliver(self, payload: Any) -> None:
        """Thread-safe hand-off into the subscriber's event loop"""
        if self.closed:
            return
        try:
            self._loop.call_soon_threadsafe(self._offer, payload)
        except RuntimeError:
            # Event loop already closed
            self.close()

    async def get(self, timeout: Optional[float] = None) -> Any:
        if timeout is None:
            return await self._queue.get()
        return await asyncio.wait_for(self._queue.get(), timeout)

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._feed.unsubscribe(self)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self.closed:
            raise StopAsyncIteration
        return await self.get()


class ChangeFeed:
    """Topic based fan-out; publishers never block on subscribers"""

    def __init__(self, max_pending: int = 100):
        self.max_pending = max_pending
        self._subscribers: Dict[str, Set[Subscription]] = defaultdict(set)
        self._lock = threading.Lock()

    def subscribe(self, topic: str) -> Subscription:
        """Must be called from inside a running event loop"""
        subscription = Subscription(self, topic, self.max_pending)
        with self._lock:
            self._subscribers[topic].add(subscription)
        logger.debug(f"Subscribed to {topic}")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._subscribers.get(subscription.topic)
            if subscribers is None:
                return
            subscribers.discard(subscription)
            if not subscribers:
                del self._subscribers[subscription.topic]
        logger.debug(f"Unsubscribed from {subscription.topic}")

    def publish(self, topic: str, payload: Any) -> int:
        """
        Push a payload to every subscriber of a topic

        Returns:
            Number of subscribers notified
        """
        with self._lock:
            subscribers = list(self._subscribers.get(topic, ()))
        for subscription in subscribers:
            subscription.deliver(payload)
        return len(subscribers)

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._subscribers.get(topic, ()))


# Global instance
change_feed = ChangeFeed()
