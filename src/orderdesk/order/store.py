"""Order Store: the lookup and write surface the rest of the system uses.

Wraps the Order commands and repository behind five operations and turns
any infrastructure failure into a retryable ``PersistenceFailure``. All
results are plain snapshots (see ``orderdesk.order.snapshots``).
"""

import json
import threading
import zlib
from contextlib import contextmanager

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from orderdesk.errors import PersistenceFailure
from orderdesk.order.order import Order
from orderdesk.order.placement import PlaceOrder
from orderdesk.order.snapshots import order_to_dict
from orderdesk.order.status_update import UpdateOrderStatus
from orderdesk.utils.settings import setting

logger = structlog.get_logger(__name__)

LOCK_STRIPES = 64


@contextmanager
def _persistence_guard(operation: str, order_id: str | None = None):
    try:
        yield
    except (ValidationError, ObjectNotFoundError):
        raise
    except Exception as exc:
        logger.error(
            "Order store operation failed",
            operation=operation,
            order_id=order_id,
            error=str(exc),
        )
        raise PersistenceFailure(
            f"Order store failed during {operation}; please retry",
            operation=operation,
            order_id=order_id,
        ) from exc


class OrderStore:
    def __init__(self, lock_stripes: int = LOCK_STRIPES):
        # Striped, not per order: the pool size never grows
        self._locks = tuple(threading.RLock() for _ in range(lock_stripes))

    def _lock_for(self, order_id: str) -> threading.RLock:
        """Same order id, same lock. Unrelated orders may share a stripe."""
        return self._locks[zlib.crc32(str(order_id).encode()) % len(self._locks)]

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def create(self, customer: dict, lines: list[dict], payment_method: str | None = None, order_id=None) -> dict:
        """Persist a pending order with its lines and return its snapshot.

        Re-submitting with the same ``order_id`` returns the stored order.
        """
        fields = {
            "order_id": order_id,
            "customer_name": customer.get("name"),
            "customer_email": customer.get("email"),
            "customer_phone": customer.get("phone"),
            "delivery_address": customer.get("address"),
            "notes": customer.get("notes"),
            "lines": json.dumps(lines),
        }
        if payment_method:
            fields["payment_method"] = payment_method
        command = PlaceOrder(**fields)
        with _persistence_guard("create", order_id):
            created_id = current_domain.process(command, asynchronous=False)
            return order_to_dict(current_domain.repository_for(Order).get(created_id))

    def update_status(self, order_id: str, status: str) -> dict:
        """Apply a status through the StatusMachine and return the new snapshot.

        Writes to the same order are serialised; the last write wins.
        """
        command = UpdateOrderStatus(order_id=order_id, status=status)
        with self._lock_for(str(order_id)), _persistence_guard("update_status", order_id):
            current_domain.process(command, asynchronous=False)
            return order_to_dict(current_domain.repository_for(Order).get(order_id))

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get(self, order_id: str) -> dict | None:
        with _persistence_guard("get", order_id):
            try:
                order = current_domain.repository_for(Order).get(order_id)
            except ObjectNotFoundError:
                return None
            return order_to_dict(order)

    def find_by_order_number(self, order_number: str) -> dict | None:
        with _persistence_guard("find_by_order_number"):
            order = current_domain.repository_for(Order).find_by_order_number(order_number)
            return order_to_dict(order) if order is not None else None

    def list_all(self) -> list[dict]:
        """Every order, newest first, up to ``fleet_list_limit`` rows."""
        with _persistence_guard("list_all"):
            orders = current_domain.repository_for(Order).list_recent(int(setting("fleet_list_limit")))
            return [order_to_dict(order) for order in orders]


order_store = OrderStore()
