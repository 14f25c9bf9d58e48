"""Plain-dict snapshots of orders handed to views, the feed and the API.

Views and subscribers never hold live aggregates; they hold these dicts.
Both builders produce the same shape so a snapshot taken from the store and
one rebuilt from an ``OrderPlaced`` event are interchangeable.
"""

import json


def order_to_dict(order) -> dict:
    order_id = str(order.id)
    return {
        "id": order_id,
        "order_number": order.order_number,
        "customer_name": order.customer_name,
        "customer_email": order.customer_email,
        "customer_phone": order.customer_phone,
        "delivery_address": order.delivery_address,
        "notes": order.notes or "",
        "total_amount": order.total_amount,
        "payment_method": order.payment_method,
        "status": order.status,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
        "items": [
            {
                "id": str(line.id),
                "order_id": order_id,
                "item_name": line.item_name,
                "quantity": line.quantity,
                "price": line.price,
            }
            for line in order.lines
        ],
    }


def placed_snapshot(event) -> dict:
    """Rebuild an order snapshot from an ``OrderPlaced`` event."""
    order_id = str(event.order_id)
    lines = json.loads(event.lines) if isinstance(event.lines, str) else (event.lines or [])
    return {
        "id": order_id,
        "order_number": event.order_number,
        "customer_name": event.customer_name,
        "customer_email": event.customer_email,
        "customer_phone": event.customer_phone,
        "delivery_address": event.delivery_address,
        "notes": event.notes or "",
        "total_amount": event.total_amount,
        "payment_method": event.payment_method,
        "status": event.status,
        "created_at": event.created_at,
        "updated_at": event.created_at,
        "items": [{**line, "order_id": order_id} for line in lines],
    }
