"""Order Session View: the customer's live view of one order.

Opening a view subscribes to the change feed first and fetches the order
second. Feed events that arrive while the fetch is in flight are held and
replayed on top of the fetched snapshot, so the feed always wins over the
initial read.
"""

import threading
from collections.abc import Callable

import structlog

from orderdesk.feed.events import OrderCreated, OrderUpdated
from orderdesk.order.status import CANONICAL_SEQUENCE, TRACKING_LABELS, OrderStatus

logger = structlog.get_logger(__name__)

EMPTY_SEARCH_MESSAGE = "Please enter an order number"
NOT_FOUND_MESSAGE = "Order not found. Please check your order number."


class OrderSessionView:
    def __init__(self, store, feed, on_change: Callable[[dict], None] | None = None):
        self._store = store
        self._feed = feed
        self._on_change = on_change
        self._lock = threading.RLock()
        self._subscription = None
        self._order: dict | None = None
        self._pending: list = []
        self._loaded = False
        self.error: str | None = None

    @property
    def current(self) -> dict | None:
        """The last-seen snapshot of the tracked order."""
        with self._lock:
            return dict(self._order) if self._order is not None else None

    @property
    def order_id(self) -> str | None:
        with self._lock:
            return self._order["id"] if self._order is not None else None

    # -------------------------------------------------------------------
    # Opening
    # -------------------------------------------------------------------
    def track(self, order_id: str) -> dict | None:
        """Start tracking ``order_id``; returns the reconciled snapshot or None."""
        self.close()
        order_id = str(order_id)

        with self._lock:
            self._pending = []
            self._loaded = False
            self._subscription = self._feed.subscribe_one(order_id, self._on_event)

        try:
            snapshot = self._store.get(order_id)
        except Exception:
            self.close()
            raise

        with self._lock:
            if snapshot is None:
                self._feed.unsubscribe(self._subscription)
                self._subscription = None
                self.error = NOT_FOUND_MESSAGE
                return None

            self._order = snapshot
            for event in self._pending:
                self._merge(event)
            self._pending = []
            self._loaded = True
            self.error = None
            current = dict(self._order)

        logger.debug("Tracking order", order_id=order_id, status=current["status"])
        self._notify(current)
        return current

    def search(self, order_number: str) -> dict | None:
        """Look up an order by its number and track it.

        A miss is a normal outcome: ``error`` carries the message and the
        result is None.
        """
        number = (order_number or "").strip()
        if not number:
            self.error = EMPTY_SEARCH_MESSAGE
            return None

        found = self._store.find_by_order_number(number)
        if found is None:
            self.error = NOT_FOUND_MESSAGE
            return None
        return self.track(found["id"])

    def close(self) -> None:
        with self._lock:
            if self._subscription is not None:
                self._feed.unsubscribe(self._subscription)
                self._subscription = None

    # -------------------------------------------------------------------
    # Feed handling
    # -------------------------------------------------------------------
    def _on_event(self, event) -> None:
        with self._lock:
            if not self._loaded:
                self._pending.append(event)
                return
            self._merge(event)
            current = dict(self._order)
        self._notify(current)

    def _merge(self, event) -> None:
        if isinstance(event, OrderCreated):
            self._order = dict(event.order)
        elif isinstance(event, OrderUpdated):
            self._order = {**self._order, **event.changed_fields}

    def _notify(self, snapshot: dict) -> None:
        if self._on_change is not None:
            self._on_change(snapshot)

    # -------------------------------------------------------------------
    # Presentation helpers
    # -------------------------------------------------------------------
    def progress(self) -> list[dict]:
        """Tracking steps with completed/current flags for the tracked order.

        A cancelled order marks no step as reached.
        """
        current = self.current
        status = current["status"] if current else None
        sequence = [step.value for step in CANONICAL_SEQUENCE]
        reached = sequence.index(status) if status in sequence else -1

        return [
            {
                "status": step.value,
                "label": TRACKING_LABELS[step],
                "completed": index <= reached,
                "current": index == reached,
            }
            for index, step in enumerate(CANONICAL_SEQUENCE)
        ]

    @property
    def is_cancelled(self) -> bool:
        current = self.current
        return bool(current) and current["status"] == OrderStatus.CANCELLED.value
