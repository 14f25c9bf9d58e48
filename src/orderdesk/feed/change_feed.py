"""In-process publish/subscribe over order mutations.

Topics are an order id or ``ALL_ORDERS``. Delivery is best-effort with no
redelivery: a subscriber whose callback raises is dropped and is expected to
re-fetch authoritative state when it reconnects.

Publishes are serialised, so every subscriber sees a given order's events in
the order they were published. The store publishes in commit order, which
makes that the commit order as well.
"""

import threading
from collections.abc import Callable
from uuid import uuid4

import structlog

from orderdesk.feed.events import OrderCreated, OrderUpdated

logger = structlog.get_logger(__name__)

ALL_ORDERS = "*"

FeedEvent = OrderCreated | OrderUpdated


class Subscription:
    """Handle returned by subscribe calls; pass it back to ``unsubscribe``."""

    def __init__(self, topic: str, callback: Callable[[FeedEvent], None]):
        self.handle = uuid4().hex
        self.topic = topic
        self.callback = callback
        self.active = True

    def matches(self, order_id: str) -> bool:
        return self.topic == ALL_ORDERS or self.topic == order_id

    def __repr__(self):
        return f"<Subscription {self.handle[:8]} topic={self.topic} active={self.active}>"


class ChangeFeed:
    def __init__(self):
        self._registry_lock = threading.Lock()
        self._publish_lock = threading.RLock()
        self._subscriptions: dict[str, Subscription] = {}

    # -------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------
    def subscribe_all(self, callback: Callable[[FeedEvent], None]) -> Subscription:
        """Receive every create and update event, system wide."""
        return self._subscribe(ALL_ORDERS, callback)

    def subscribe_one(self, order_id: str, callback: Callable[[FeedEvent], None]) -> Subscription:
        """Receive only events for ``order_id``."""
        return self._subscribe(str(order_id), callback)

    def _subscribe(self, topic: str, callback) -> Subscription:
        subscription = Subscription(topic, callback)
        with self._registry_lock:
            self._subscriptions[subscription.handle] = subscription
        logger.debug("Feed subscription opened", handle=subscription.handle, topic=topic)
        return subscription

    def unsubscribe(self, handle: Subscription | str | None) -> None:
        """Release a subscription. Safe to call repeatedly or with None."""
        if handle is None:
            return
        key = handle.handle if isinstance(handle, Subscription) else handle
        with self._registry_lock:
            subscription = self._subscriptions.pop(key, None)
        if subscription is not None:
            subscription.active = False
            logger.debug("Feed subscription closed", handle=key, topic=subscription.topic)

    def subscriber_count(self, order_id: str | None = None) -> int:
        with self._registry_lock:
            if order_id is None:
                return len(self._subscriptions)
            return sum(1 for s in self._subscriptions.values() if s.matches(str(order_id)))

    def reset(self) -> None:
        """Drop every subscription."""
        with self._registry_lock:
            subscriptions = list(self._subscriptions.values())
            self._subscriptions.clear()
        for subscription in subscriptions:
            subscription.active = False

    # -------------------------------------------------------------------
    # Fan-out
    # -------------------------------------------------------------------
    def publish(self, event: FeedEvent) -> int:
        """Deliver ``event`` to every matching subscriber; return the count reached."""
        order_id = str(event.order_id)
        with self._publish_lock:
            with self._registry_lock:
                targets = [s for s in self._subscriptions.values() if s.matches(order_id)]

            delivered = 0
            for subscription in targets:
                if not subscription.active:
                    continue
                try:
                    subscription.callback(event)
                except Exception as exc:
                    logger.warning(
                        "Feed subscriber failed, dropping subscription",
                        handle=subscription.handle,
                        topic=subscription.topic,
                        order_id=order_id,
                        error=str(exc),
                    )
                    self.unsubscribe(subscription)
                    continue
                delivered += 1

        logger.debug("Feed event published", event_type=type(event).__name__, order_id=order_id, delivered=delivered)
        return delivered


change_feed = ChangeFeed()
