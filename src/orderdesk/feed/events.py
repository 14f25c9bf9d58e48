"""Change feed event shapes.

These are transport envelopes for live observers, distinct from the Protean
domain events they are derived from.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class OrderCreated:
    order: dict

    @property
    def order_id(self) -> str:
        return str(self.order["id"])


@dataclass(frozen=True)
class OrderUpdated:
    order_id: str
    changed_fields: dict
