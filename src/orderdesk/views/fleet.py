"""Fleet View: the operator dashboard's live list of every order.

The list is newest first. ``OrderCreated`` events insert at the head and
``OrderUpdated`` events patch the matching row and the selected-order pane.
Like the session view, it subscribes before fetching and replays events
that arrived during the fetch. After a dropped connection the view refetches
the whole list instead of trusting a replay of missed events.

Status changes are not optimistic: the list only moves once the store has
confirmed the write.
"""

import threading
from collections.abc import Callable

import structlog

from orderdesk.feed.events import OrderCreated, OrderUpdated

logger = structlog.get_logger(__name__)


class FleetView:
    def __init__(self, store, feed, on_change: Callable[[dict], None] | None = None):
        self._store = store
        self._feed = feed
        self._on_change = on_change
        self._lock = threading.RLock()
        self._subscription = None
        self._orders: list[dict] = []
        self._selected_id: str | None = None
        self._pending: list = []
        self._loaded = False

    # -------------------------------------------------------------------
    # State accessors
    # -------------------------------------------------------------------
    @property
    def orders(self) -> list[dict]:
        with self._lock:
            return [dict(order) for order in self._orders]

    @property
    def selected(self) -> dict | None:
        with self._lock:
            row = self._row(self._selected_id) if self._selected_id else None
            return dict(row) if row is not None else None

    @property
    def is_open(self) -> bool:
        return self._subscription is not None

    def _row(self, order_id: str) -> dict | None:
        return next((order for order in self._orders if order["id"] == order_id), None)

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def open(self) -> list[dict]:
        """Subscribe to every order and load the full list."""
        with self._lock:
            self._pending = []
            self._loaded = False
            self._subscription = self._feed.subscribe_all(self._on_event)

        try:
            snapshot = self._store.list_all()
        except Exception:
            self.close()
            raise

        with self._lock:
            self._orders = snapshot
            for event in self._pending:
                self._apply(event)
            self._pending = []
            self._loaded = True
            orders = [dict(order) for order in self._orders]

        logger.info("Fleet view opened", order_count=len(orders))
        self._notify({"type": "snapshot", "orders": orders})
        return orders

    def reconnect(self) -> list[dict]:
        """Drop the current subscription and refetch everything."""
        self.close()
        return self.open()

    def close(self) -> None:
        with self._lock:
            if self._subscription is not None:
                self._feed.unsubscribe(self._subscription)
                self._subscription = None

    # -------------------------------------------------------------------
    # Operator actions
    # -------------------------------------------------------------------
    def select(self, order_id: str | None) -> dict | None:
        """Show ``order_id`` in the detail pane; None clears the pane."""
        with self._lock:
            self._selected_id = str(order_id) if order_id else None
            if self._selected_id is None or self._row(self._selected_id) is not None:
                return self.selected

        # Not in the list yet: fetch it and add it to the list
        found = self._store.get(self._selected_id)
        if found is None:
            with self._lock:
                self._selected_id = None
            return None
        with self._lock:
            if self._row(found["id"]) is None:
                self._orders.insert(0, found)
            return self.selected

    def set_status(self, order_id: str, status: str) -> dict:
        """Ask the store to move an order; the view follows only on success.

        ``PersistenceFailure`` and ``ValidationError`` propagate and leave the
        view exactly as it was.
        """
        updated = self._store.update_status(order_id, status)
        change = OrderUpdated(
            order_id=updated["id"],
            changed_fields={"status": updated["status"], "updated_at": updated["updated_at"]},
        )
        with self._lock:
            existing = self._row(updated["id"])
            # The feed usually delivers the same change first
            already_applied = existing is not None and all(
                existing.get(key) == value for key, value in change.changed_fields.items()
            )
            row = None if already_applied else self._apply(change)
        if row is not None:
            self._notify({"type": "updated", "order": row})
        return updated

    # -------------------------------------------------------------------
    # Feed handling
    # -------------------------------------------------------------------
    def _on_event(self, event) -> None:
        with self._lock:
            if not self._loaded:
                self._pending.append(event)
                return
            row = self._apply(event)
        if row is None:
            return
        kind = "created" if isinstance(event, OrderCreated) else "updated"
        self._notify({"type": kind, "order": row})

    def _apply(self, event) -> dict | None:
        """Merge one event into the list; returns a copy of the affected row."""
        if isinstance(event, OrderCreated):
            order = dict(event.order)
            existing = self._row(order["id"])
            if existing is not None:
                existing.update(order)
                return dict(existing)
            self._orders.insert(0, order)
            return dict(order)

        if isinstance(event, OrderUpdated):
            row = self._row(str(event.order_id))
            if row is None:
                logger.debug("Update for an order outside the list", order_id=str(event.order_id))
                return None
            row.update(event.changed_fields)
            return dict(row)

        return None

    def _notify(self, change: dict) -> None:
        if self._on_change is not None:
            self._on_change(change)
