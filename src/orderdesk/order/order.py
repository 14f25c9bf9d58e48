"""Order aggregate: the single source of truth for an order and its status.

Stored as two tables, ``orders`` and ``order_items``. Line items are
snapshots of name and unit price taken at checkout, so historical orders do
not change when the menu does. Lines are written together with the order in
one unit of work and are never modified afterwards.
"""

import json
import time
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Integer, String, Text

from orderdesk.domain import orderdesk
from orderdesk.order.events import OrderPlaced, OrderStatusChanged
from orderdesk.order.status import INITIAL_STATUS, OrderStatus


class PaymentMethod(Enum):
    """Informational payment tag; no settlement happens."""

    COD = "cod"
    UPI = "upi"
    CARD = "card"


def generate_order_number(millis: int | None = None) -> str:
    """``ORD-`` followed by the last 8 digits of a millisecond timestamp."""
    if millis is None:
        millis = int(time.time() * 1000)
    return f"ORD-{str(millis)[-8:]}"


@orderdesk.entity(part_of="Order", schema_name="order_items")
class OrderLine:
    item_name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    price = Float(required=True, min_value=0.0)

    @property
    def subtotal(self):
        return self.price * self.quantity


@orderdesk.aggregate(schema_name="orders")
class Order:
    order_number = String(required=True, max_length=20)
    customer_name = String(required=True, max_length=255)
    customer_email = String(required=True, max_length=255)
    customer_phone = String(required=True, max_length=50)
    delivery_address = Text(required=True)
    notes = Text()
    total_amount = Float(required=True, min_value=0.0)
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.COD.value)
    status = String(choices=OrderStatus, default=INITIAL_STATUS.value)
    lines = HasMany(OrderLine)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, order_number, customer, lines, payment_method=None, order_id=None):
        """Create a pending order from checked-out cart lines.

        Args:
            order_number: Human-facing number, already checked for collisions.
            customer: Dict with name, email, phone, address and optional notes.
            lines: List of dicts with item_name, quantity, price.
            payment_method: One of ``PaymentMethod`` values; defaults to cod.
            order_id: Optional caller-chosen identity.
        """
        if not lines:
            raise ValidationError({"lines": ["An order needs at least one line item"]})

        now = datetime.now(UTC)
        total = sum(line["price"] * line["quantity"] for line in lines)

        attributes = {
            "order_number": order_number,
            "customer_name": customer.get("name"),
            "customer_email": customer.get("email"),
            "customer_phone": customer.get("phone"),
            "delivery_address": customer.get("address"),
            "notes": customer.get("notes") or "",
            "total_amount": total,
            "payment_method": payment_method or PaymentMethod.COD.value,
            "status": INITIAL_STATUS.value,
            "created_at": now,
            "updated_at": now,
        }
        if order_id:
            attributes["id"] = order_id

        order = cls(**attributes)
        for line in lines:
            order.add_lines(
                OrderLine(
                    item_name=line["item_name"],
                    quantity=line["quantity"],
                    price=line["price"],
                )
            )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                customer_name=order.customer_name,
                customer_email=order.customer_email,
                customer_phone=order.customer_phone,
                delivery_address=order.delivery_address,
                notes=order.notes,
                total_amount=order.total_amount,
                payment_method=order.payment_method,
                status=order.status,
                lines=json.dumps(
                    [
                        {
                            "id": str(item.id),
                            "item_name": item.item_name,
                            "quantity": item.quantity,
                            "price": item.price,
                        }
                        for item in order.lines
                    ]
                ),
                created_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------
    def record_status(self, status, at):
        """Write a status already validated by the StatusMachine."""
        previous = self.status
        self.status = status
        self.updated_at = at

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                status=status,
                updated_at=at,
            )
        )
