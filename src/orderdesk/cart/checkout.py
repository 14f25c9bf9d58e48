"""Checkout: turn a cart into a stored order."""

import structlog
from protean.exceptions import ValidationError

from orderdesk.cart.cart import Cart

logger = structlog.get_logger(__name__)


def checkout(cart: Cart, store, customer: dict, payment_method: str | None = None, order_id=None) -> dict:
    """Place an order from ``cart`` and clear the cart once the store confirms.

    ``ValidationError`` and ``PersistenceFailure`` propagate with the cart
    left as it was, so the customer can correct the form or retry.
    """
    if not cart.lines:
        raise ValidationError({"cart": ["Cannot place an order from an empty cart"]})

    order = store.create(
        customer=customer,
        lines=cart.to_order_lines(),
        payment_method=payment_method,
        order_id=order_id,
    )
    cart.clear()

    logger.info(
        "Checkout complete",
        order_id=order["id"],
        order_number=order["order_number"],
        total_amount=order["total_amount"],
    )
    return order
