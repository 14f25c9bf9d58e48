"""Cart aggregate: an explicitly owned, never persisted basket of lines.

A cart is started for a session and passed to whoever needs it; there is no
process-wide cart. It lives until checkout succeeds, at which point it is
cleared. Losing it before checkout loses the unsubmitted lines.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Integer, String

from orderdesk.domain import orderdesk


@orderdesk.entity(part_of="Cart", provider="ephemeral")
class CartLine:
    menu_item_id = Integer(required=True)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)

    @property
    def subtotal(self):
        return self.unit_price * self.quantity


@orderdesk.aggregate(provider="ephemeral")
class Cart:
    lines = HasMany(CartLine)
    started_at = DateTime()

    @invariant.post
    def one_line_per_menu_item(self):
        item_ids = [line.menu_item_id for line in self.lines]
        if len(item_ids) != len(set(item_ids)):
            raise ValidationError({"lines": ["A menu item can appear only once in a cart"]})

    @classmethod
    def start(cls):
        return cls(started_at=datetime.now(UTC))

    def line_for(self, item_id) -> CartLine | None:
        return next((line for line in self.lines if line.menu_item_id == int(item_id)), None)

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def add_item(self, item):
        """Add one unit of a menu item, creating its line on first add."""
        existing = self.line_for(item.id)
        if existing:
            existing.quantity += 1
        else:
            self.add_lines(
                CartLine(
                    menu_item_id=item.id,
                    name=item.name,
                    unit_price=item.price,
                    quantity=1,
                )
            )

    def remove_item(self, item_id):
        line = self.line_for(item_id)
        if line is not None:
            self.remove_lines(line)

    def set_quantity(self, item_id, quantity):
        """Overwrite a line's quantity; zero or less removes the line."""
        if quantity <= 0:
            self.remove_item(item_id)
            return
        line = self.line_for(item_id)
        if line is not None:
            line.quantity = quantity

    def clear(self):
        for line in list(self.lines):
            self.remove_lines(line)

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    def total_amount(self):
        return sum(line.unit_price * line.quantity for line in self.lines)

    def total_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def to_order_lines(self) -> list[dict]:
        """Name and price snapshots for the order store."""
        return [
            {"item_name": line.name, "quantity": line.quantity, "price": line.unit_price}
            for line in self.lines
        ]
