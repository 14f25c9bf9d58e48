"""Relay committed Order events onto the change feed."""

from protean import handle

from orderdesk.domain import orderdesk
from orderdesk.feed.change_feed import change_feed
from orderdesk.feed.events import OrderCreated, OrderUpdated
from orderdesk.order.events import OrderPlaced, OrderStatusChanged
from orderdesk.order.order import Order
from orderdesk.order.snapshots import placed_snapshot


@orderdesk.event_handler(part_of=Order)
class ChangeFeedRelay:
    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        change_feed.publish(OrderCreated(order=placed_snapshot(event)))

    @handle(OrderStatusChanged)
    def on_status_changed(self, event: OrderStatusChanged) -> None:
        change_feed.publish(
            OrderUpdated(
                order_id=str(event.order_id),
                changed_fields={"status": event.status, "updated_at": event.updated_at},
            )
        )
