"""Order confirmation dispatch.

Placing an order hands a confirmation to every channel on a small thread
pool. Checkout returns as soon as the hand-off is made; a channel that fails
or raises is logged here and never reaches the customer or the order.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait

import structlog
from protean import handle

from orderdesk.domain import orderdesk
from orderdesk.errors import NotificationFailure
from orderdesk.notifications import NotificationChannel, get_channel
from orderdesk.notifications.messages import OrderConfirmationEmail, OrderConfirmationSMS
from orderdesk.order.events import OrderPlaced
from orderdesk.order.order import Order
from orderdesk.order.snapshots import placed_snapshot
from orderdesk.utils.settings import setting

logger = structlog.get_logger(__name__)

MESSAGES = {
    NotificationChannel.EMAIL: OrderConfirmationEmail,
    NotificationChannel.SMS: OrderConfirmationSMS,
}


def render_confirmation(order: dict, channel: NotificationChannel, restaurant_name: str | None = None) -> dict:
    if restaurant_name is None:
        restaurant_name = setting("restaurant_name")
    return MESSAGES[channel].render(order, restaurant_name)


def _send(channel: NotificationChannel, message: dict) -> dict:
    adapter = get_channel(channel.value)
    if channel == NotificationChannel.EMAIL:
        result = adapter.send(
            to=message["to"],
            subject=message["subject"],
            body=message["body"],
            html_body=message.get("html_body"),
        )
    else:
        result = adapter.send(to=message["to"], body=message["body"])

    if result.get("status") != "sent":
        raise NotificationFailure(channel.value, result.get("error", "Unknown dispatch error"))
    return result


class NotificationDispatcher:
    """Fire-and-forget delivery of order confirmations."""

    def __init__(self, max_workers: int = 4):
        self.max_workers = max_workers
        self._executor: ThreadPoolExecutor | None = None
        self._pending: set[Future] = set()
        self._lock = threading.Lock()

    def _pool(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers, thread_name_prefix="orderdesk-notify"
                )
            return self._executor

    def deliver(self, channel: NotificationChannel, message: dict, order_number: str | None = None) -> bool:
        """Send one rendered message; True on success, False on any failure."""
        try:
            result = _send(channel, message)
        except Exception as exc:
            logger.error(
                "Notification dispatch failed",
                channel=channel.value,
                order_number=order_number,
                error=str(exc),
            )
            return False

        logger.info(
            "Notification sent",
            channel=channel.value,
            order_number=order_number,
            message_id=result.get("message_id"),
        )
        return True

    def dispatch(self, order: dict, channel: NotificationChannel) -> bool:
        """Render and send synchronously on the calling thread."""
        message = render_confirmation(order, channel)
        return self.deliver(channel, message, order.get("order_number"))

    def dispatch_later(self, order: dict) -> list[Future]:
        """Queue a confirmation on every channel and return immediately.

        Messages are rendered on the calling thread, where the domain
        configuration is available; only the sending happens on the pool.
        """
        futures = []
        for channel in NotificationChannel:
            message = render_confirmation(order, channel)
            future = self._pool().submit(self.deliver, channel, message, order.get("order_number"))
            with self._lock:
                self._pending.add(future)
            future.add_done_callback(self._forget)
            futures.append(future)
        return futures

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def drain(self, timeout: float | None = 5.0) -> bool:
        """Wait for queued deliveries; True when none are left outstanding."""
        with self._lock:
            pending = set(self._pending)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait_for_pending: bool = True) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait_for_pending)


dispatcher = NotificationDispatcher()


@orderdesk.event_handler(part_of=Order)
class OrderConfirmationNotifier:
    """Queues customer confirmations once an order is committed."""

    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        order = placed_snapshot(event)
        try:
            dispatcher.dispatch_later(order)
        except Exception as exc:
            logger.error("Could not queue order confirmation", order_number=order["order_number"], error=str(exc))
            return
        logger.info("Order confirmation queued", order_number=order["order_number"])
