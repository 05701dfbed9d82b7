"""
Ciclus RD - Change Feed
Table-keyed change notifications. Subscribers are called with no payload and
are expected to re-fetch.
"""

import threading
from typing import Callable, Dict, List

from loguru import logger


class Subscription:
    """Handle returned by ChangeFeed.subscribe"""

    def __init__(self, feed: "ChangeFeed", topic: str, callback: Callable[[], None]):
        self._feed = feed
        self.topic = topic
        self.callback = callback
        self.active = True

    def unsubscribe(self):
        if self.active:
            self._feed._remove(self)
            self.active = False


class ChangeFeed:
    """In-process publish/subscribe keyed by table name"""

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: Dict[str, List[Subscription]] = {}

    def subscribe(self, topic: str, callback: Callable[[], None]) -> Subscription:
        subscription = Subscription(self, topic, callback)
        with self._lock:
            self._subscribers.setdefault(topic, []).append(subscription)
        logger.debug(f"Subscribed to changes on '{topic}'")
        return subscription

    def _remove(self, subscription: Subscription):
        with self._lock:
            subscribers = self._subscribers.get(subscription.topic, [])
            if subscription in subscribers:
                subscribers.remove(subscription)
        logger.debug(f"Unsubscribed from changes on '{subscription.topic}'")

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._subscribers.get(topic, []))

    def publish(self, topic: str):
        """Notify every subscriber of topic; a failing callback does not stop the others"""
        with self._lock:
            subscribers = list(self._subscribers.get(topic, []))

        for subscription in subscribers:
            try:
                subscription.callback()
            except Exception as e:
                logger.error(f"Change callback for '{topic}' failed: {e}")

    def clear(self):
        with self._lock:
            for subscribers in self._subscribers.values():
                for subscription in subscribers:
                    subscription.active = False
            self._subscribers.clear()
