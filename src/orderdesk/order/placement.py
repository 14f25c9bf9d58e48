"""Order placement: command and handler."""

import json
import time

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from orderdesk.domain import orderdesk
from orderdesk.order.order import Order, PaymentMethod, generate_order_number

logger = structlog.get_logger(__name__)


@orderdesk.command(part_of="Order")
class PlaceOrder:
    order_id = Identifier()  # Optional idempotency key chosen by the caller
    customer_name = String(required=True, max_length=255)
    customer_email = String(required=True, max_length=255)
    customer_phone = String(required=True, max_length=50)
    delivery_address = Text(required=True)
    notes = Text()
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.COD.value)
    lines = Text(required=True)  # JSON: list of {item_name, quantity, price}


def _fresh_order_number(repo) -> str:
    """Allocate an order number, stepping the timestamp past any collision."""
    millis = int(time.time() * 1000)
    number = generate_order_number(millis)
    while repo.find_by_order_number(number) is not None:
        millis += 1
        number = generate_order_number(millis)
    return number


@orderdesk.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        repo = current_domain.repository_for(Order)

        if command.order_id:
            try:
                existing = repo.get(command.order_id)
            except ObjectNotFoundError:
                existing = None
            if existing is not None:
                logger.info("Order already placed, returning existing record", order_id=str(existing.id))
                return str(existing.id)

        lines = json.loads(command.lines) if isinstance(command.lines, str) else command.lines

        order = Order.place(
            order_number=_fresh_order_number(repo),
            customer={
                "name": command.customer_name,
                "email": command.customer_email,
                "phone": command.customer_phone,
                "address": command.delivery_address,
                "notes": command.notes,
            },
            lines=lines,
            payment_method=command.payment_method,
            order_id=command.order_id,
        )
        repo.add(order)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            total_amount=order.total_amount,
        )
        return str(order.id)
