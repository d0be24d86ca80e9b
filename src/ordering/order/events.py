"""Domain events for the Order aggregate.

Events are immutable, versioned facts raised on every state change of the
order cluster. They form the audit trail of an order; the workflow itself
does not depend on anyone consuming them.
"""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A new order was created from a cart snapshot."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    item_count = Integer(required=True)
    total_amount = Float(required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPaid:
    """The order total was charged successfully."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_id = Identifier(required=True)
    payment_method = String(required=True)
    amount = Float(required=True)
    charged_amount = Float(required=True)
    transaction_id = String(required=True)
    invoice_number = String(required=True)
    tracking_number = String(required=True)
    paid_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPaymentFailed:
    """The payment instrument declined the charge."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_id = Identifier(required=True)
    payment_method = String(required=True)
    amount = Float(required=True)
    reason = String(required=True)
    failed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderProcessing:
    __version__ = 1

    order_id = Identifier(required=True)
    started_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderShipped:
    __version__ = 1

    order_id = Identifier(required=True)
    tracking_number = String(required=True)
    courier_partner = String()
    shipped_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderDelivered:
    __version__ = 1

    order_id = Identifier(required=True)
    delivered_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderReturned:
    __version__ = 1

    order_id = Identifier(required=True)
    reason = String()
    returned_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled. Refund settlement is reported separately."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String()
    payment_captured = Boolean(default=False)
    cancelled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderRefunded:
    __version__ = 1

    order_id = Identifier(required=True)
    payment_id = Identifier(required=True)
    amount = Float(required=True)
    transaction_id = String(required=True)
    refunded_at = DateTime(required=True)


@ordering.event(part_of="Order")
class CashCollected:
    """A delivery agent collected the cash for a cash-on-delivery order."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_id = Identifier(required=True)
    agent_id = String(required=True)
    amount = Float(required=True)
    collected_at = DateTime(required=True)


@ordering.event(part_of="Order")
class ShipmentStatusUpdated:
    __version__ = 1

    order_id = Identifier(required=True)
    tracking_number = String(required=True)
    status = String(required=True)
    description = String()
    location = String()
    milestone = Boolean(default=False)
    updated_at = DateTime(required=True)
