"""Order status machine.

Canonical forward sequence:
    pending → confirmed → preparing → ready → out_for_delivery → delivered
Side edge:
    any non-terminal state → cancelled

``delivered`` and ``cancelled`` are terminal.

Two policies are supported. The permissive policy (the default) accepts any
known status as a target, matching an operator dashboard that offers every
status at all times. The strict policy only accepts forward moves along the
canonical sequence plus cancellation, and nothing out of a terminal state.
The policy is chosen through the ``strict_transitions`` custom setting.
"""

from datetime import UTC, datetime, timedelta
from enum import Enum

from protean.exceptions import ValidationError

from orderdesk.errors import TransitionRejected


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


CANONICAL_SEQUENCE = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
)

TERMINAL_STATES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

INITIAL_STATUS = OrderStatus.PENDING

# Customer-facing tracking steps; cancelled is rendered separately
TRACKING_LABELS = {
    OrderStatus.PENDING: "Order Placed",
    OrderStatus.CONFIRMED: "Confirmed",
    OrderStatus.PREPARING: "Preparing",
    OrderStatus.READY: "Ready",
    OrderStatus.OUT_FOR_DELIVERY: "Out for Delivery",
    OrderStatus.DELIVERED: "Delivered",
}

# Operator-facing labels, one per selectable status
STATUS_LABELS = {
    OrderStatus.PENDING: "Pending",
    OrderStatus.CONFIRMED: "Confirmed",
    OrderStatus.PREPARING: "Preparing",
    OrderStatus.READY: "Ready",
    OrderStatus.OUT_FOR_DELIVERY: "Out for Delivery",
    OrderStatus.DELIVERED: "Delivered",
    OrderStatus.CANCELLED: "Cancelled",
}


def parse_status(value) -> OrderStatus:
    """Coerce a status string (or enum) into ``OrderStatus``."""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise ValidationError({"status": [f"Unknown status '{value}'. Expected one of: {allowed}"]}) from None


def is_terminal(status) -> bool:
    return parse_status(status) in TERMINAL_STATES


def can_advance_to(current, target, strict: bool = False) -> bool:
    """Whether an order in ``current`` may move to ``target``.

    Raises ``ValidationError`` for statuses that do not exist.
    """
    current_status = parse_status(current)
    target_status = parse_status(target)

    if not strict:
        return True

    if current_status in TERMINAL_STATES:
        return False
    if target_status == OrderStatus.CANCELLED:
        return True
    return CANONICAL_SEQUENCE.index(target_status) > CANONICAL_SEQUENCE.index(current_status)


def allowed_targets(current, strict: bool = False) -> list[OrderStatus]:
    """Statuses an operator may pick for an order currently in ``current``."""
    return [status for status in OrderStatus if can_advance_to(current, status, strict=strict)]


class StatusMachine:
    """Validates and applies status transitions to an Order aggregate."""

    def __init__(self, strict: bool = False):
        self.strict = strict

    def apply(self, order, target):
        """Move ``order`` to ``target`` and stamp a fresh ``updated_at``.

        The aggregate raises ``OrderStatusChanged``; it reaches the change
        feed only after the repository commits.
        """
        target_status = parse_status(target)
        current = order.status
        if not can_advance_to(current, target_status, strict=self.strict):
            raise TransitionRejected(current, target_status.value)

        now = datetime.now(UTC)
        # updated_at must strictly increase even when the clock does not
        if order.updated_at is not None and now <= order.updated_at:
            now = order.updated_at + timedelta(microseconds=1)

        order.record_status(target_status.value, now)
        return order
