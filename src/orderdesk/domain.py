"""OrderDesk domain: order lifecycle, live tracking and the operator dashboard.

Orders are standard CQRS aggregates persisted through Protean repositories.
Every committed change is relayed onto the in-process change feed, which the
customer tracking view and the operator fleet view subscribe to.
"""

from protean.domain import Domain

from orderdesk.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

orderdesk = Domain(name="orderdesk")
