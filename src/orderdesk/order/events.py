"""Domain events for the Order aggregate.

Events are raised inside aggregate methods and dispatched once the unit of
work commits. They feed:
- the change feed relay (live tracking and the operator dashboard)
- the confirmation notifier (email and SMS handoff)
"""

from protean.fields import DateTime, Float, Identifier, String, Text

from orderdesk.domain import orderdesk


@orderdesk.event(part_of="Order")
class OrderPlaced:
    """A customer checked out a cart and the order was stored as pending.

    Carries a full snapshot so observers never need a read-back.
    """

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_name = String(required=True)
    customer_email = String(required=True)
    customer_phone = String(required=True)
    delivery_address = Text(required=True)
    notes = Text()
    total_amount = Float(required=True)
    payment_method = String(required=True)
    status = String(required=True)
    lines = Text(required=True)  # JSON: list of {id, item_name, quantity, price}
    created_at = DateTime(required=True)


@orderdesk.event(part_of="Order")
class OrderStatusChanged:
    """The operator moved an order to a new status."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    status = String(required=True)
    updated_at = DateTime(required=True)
