"""Operator status changes: command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from orderdesk.domain import orderdesk
from orderdesk.order.order import Order
from orderdesk.order.status import StatusMachine
from orderdesk.utils.settings import setting

logger = structlog.get_logger(__name__)


@orderdesk.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=30)


@orderdesk.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.status

        machine = StatusMachine(strict=bool(setting("strict_transitions")))
        machine.apply(order, command.status)
        repo.add(order)

        logger.info(
            "Order status changed",
            order_id=str(order.id),
            previous_status=previous,
            status=order.status,
        )
        return order.status
