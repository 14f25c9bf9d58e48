"""Repository for the Order aggregate."""

from orderdesk.domain import orderdesk
from orderdesk.order.order import Order


@orderdesk.repository(part_of=Order)
class OrderRepository:
    """Adds the two lookups the lifecycle needs beyond ``get``."""

    def find_by_order_number(self, order_number: str) -> Order | None:
        """Exact, case-sensitive match. None when nothing matches."""
        results = self._dao.query.filter(order_number=order_number).all().items
        return results[0] if results else None

    def list_recent(self, limit: int) -> list[Order]:
        """Orders newest first by creation time."""
        return self._dao.query.order_by("-created_at").limit(limit).all().items
