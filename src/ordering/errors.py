"""Workflow errors raised by the ordering domain.

Every error is a Protean ``ValidationError`` so callers can treat them the
same way as field-level validation failures: ``exc.messages`` is a dict of
``{field: [message, ...]}``.
"""

from protean.exceptions import ValidationError


class OrderingError(ValidationError):
    """Base class for order workflow failures."""


class InvalidCartError(OrderingError):
    """An order was requested from an empty cart snapshot."""


class AmountMismatchError(OrderingError):
    """The payment amount does not equal the order total."""


class InvalidTransitionError(OrderingError):
    """The requested order status change is not part of the state machine."""


class NotCancellableError(OrderingError):
    """Cancellation was attempted from a status that does not allow it."""


class ChargeDeclinedError(OrderingError):
    """The payment instrument declined the charge.

    Declines are a normal business outcome: the workflow returns this error
    inside a ``PaymentOutcome`` instead of raising it.
    """


class RefundUnavailableError(OrderingError):
    """The payment cannot be refunded automatically."""
