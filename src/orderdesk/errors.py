"""Error taxonomy for the order lifecycle.

Validation problems reuse Protean's ``ValidationError`` so command and
aggregate guards stay uniform. The classes here cover what Protean does not:
store failures the caller may retry, and notification failures that are
logged at the dispatcher boundary and never propagated.
"""

from protean.exceptions import ValidationError


class PersistenceFailure(Exception):
    """The order store could not complete a read or write.

    The previously committed state is left intact; callers may retry.
    """

    retryable = True

    def __init__(self, message: str, operation: str | None = None, order_id: str | None = None):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.order_id = order_id


class NotificationFailure(Exception):
    """A notification channel reported failure or raised."""

    def __init__(self, channel: str, reason: str):
        super().__init__(f"{channel} delivery failed: {reason}")
        self.channel = channel
        self.reason = reason


class TransitionRejected(ValidationError):
    """Strict status machine refused a move."""

    def __init__(self, current: str, target: str):
        super().__init__({"status": [f"Cannot transition from {current} to {target}"]})
        self.current = current
        self.target = target
