"""Order aggregate (CQRS) — the root of the ordering domain.

An order is created from a snapshot of cart line items. Unit prices are
copied into the order at creation time and the total is computed once;
later catalogue price changes never reach an existing order.

The order owns its Payment record, Invoice and StatusTracker. Those children
know their order only through the association id Protean maintains on
owned entities.

State Machine:
    PENDING_PAYMENT → PAID → PROCESSING → SHIPPED → DELIVERED
    PENDING_PAYMENT → PAYMENT_FAILED
    SHIPPED → RETURNED
    {PENDING_PAYMENT, PAID, PROCESSING} → CANCELLED
    DELIVERED, RETURNED, CANCELLED, PAYMENT_FAILED are terminal
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import (
    DateTime,
    Float,
    HasMany,
    HasOne,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from ordering.domain import ordering
from ordering.errors import (
    InvalidCartError,
    InvalidTransitionError,
    NotCancellableError,
    RefundUnavailableError,
)
from ordering.order.events import (
    CashCollected,
    OrderCancelled,
    OrderDelivered,
    OrderPaid,
    OrderPaymentFailed,
    OrderPlaced,
    OrderProcessing,
    OrderRefunded,
    OrderReturned,
    OrderShipped,
    ShipmentStatusUpdated,
)
from ordering.order.invoice import Invoice
from ordering.order.payment import Payment
from ordering.order.tracking import ShipmentStatus, StatusTracker


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING_PAYMENT = "Pending_Payment"
    PAID = "Paid"
    PAYMENT_FAILED = "Payment_Failed"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"
    RETURNED = "Returned"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING_PAYMENT: {
        OrderStatus.PAID,
        OrderStatus.PAYMENT_FAILED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PAID: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.RETURNED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.RETURNED: set(),  # Terminal
    OrderStatus.PAYMENT_FAILED: set(),  # Terminal
}

# States from which cancellation is allowed
CANCELLABLE_STATES = frozenset(
    {
        OrderStatus.PENDING_PAYMENT,
        OrderStatus.PAID,
        OrderStatus.PROCESSING,
    }
)

# States from which a captured payment may be refunded
_REFUNDABLE_STATES = frozenset({OrderStatus.CANCELLED, OrderStatus.RETURNED})


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class DeliveryAddress:
    """Where the order is delivered, captured at checkout.

    The address is copied onto the order, so later edits to the customer's
    address book do not move an order that is already on its way.
    """

    house_number = String(max_length=50)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)

    @property
    def full_address(self) -> str:
        return (
            f"{self.house_number or ''}, {self.street}, {self.city}, "
            f"{self.state or ''} - {self.postal_code}, {self.country}"
        )


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A line item frozen at order time: product, selected options and unit price."""

    product_id = Identifier(required=True)
    title = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    size = String(max_length=50)
    color = String(max_length=50)

    @property
    def subtotal(self) -> float:
        return self.unit_price * self.quantity


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    customer_id = Identifier(required=True)
    status = String(
        max_length=50,
        choices=OrderStatus,
        default=OrderStatus.PENDING_PAYMENT.value,
    )
    items = HasMany(OrderItem)
    delivery_address = ValueObject(DeliveryAddress)
    total_amount = Float(required=True, min_value=0.0)
    contact = String(max_length=254)
    payment = HasOne(Payment)
    invoice = HasOne(Invoice)
    tracker = HasOne(StatusTracker)
    cancellation_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        customer_id: str,
        items_data: list[dict],
        delivery_address: dict | DeliveryAddress | None = None,
        contact: str | None = None,
    ):
        """Create a new order from a cart snapshot.

        Args:
            customer_id: The user placing the order.
            items_data: Non-empty list of dicts with product_id, quantity,
                        unit_price and optionally title, size, color.
            delivery_address: Dict with house_number, street, city, state,
                              postal_code, country (or a DeliveryAddress).
            contact: Email address or phone number for notifications.
        """
        if not items_data:
            raise InvalidCartError({"items": ["Cannot place an order from an empty cart"]})

        # Copy every field so the order never shares state with the caller's snapshot
        items = [
            OrderItem(
                product_id=data["product_id"],
                title=data.get("title"),
                quantity=data["quantity"],
                unit_price=data["unit_price"],
                size=data.get("size"),
                color=data.get("color"),
            )
            for data in items_data
        ]
        total = sum(item.subtotal for item in items)

        if isinstance(delivery_address, dict):
            delivery_address = DeliveryAddress(**delivery_address)

        now = datetime.now(UTC)
        order = cls(
            customer_id=customer_id,
            status=OrderStatus.PENDING_PAYMENT.value,
            delivery_address=delivery_address,
            total_amount=total,
            contact=contact,
            created_at=now,
            updated_at=now,
        )
        for item in items:
            order.add_items(item)

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=str(customer_id),
                item_count=len(items),
                total_amount=total,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # State transition helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status: OrderStatus) -> None:
        """Validate that the current state allows transition to target."""
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransitionError(
                {"status": [f"Cannot transition from {current.value} to {target_status.value}"]}
            )

    def _transition(self, target_status: OrderStatus) -> datetime:
        self._assert_can_transition(target_status)
        now = datetime.now(UTC)
        self.status = target_status.value
        self.updated_at = now
        return now

    def can_be_cancelled(self) -> bool:
        return OrderStatus(self.status) in CANCELLABLE_STATES

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def record_payment_success(
        self,
        method_type: str,
        charged_amount: float,
        installments: int = 0,
        installment_amount: float | None = None,
    ) -> None:
        """Mark the order PAID and build its invoice and shipment tracker."""
        self._assert_can_transition(OrderStatus.PAID)

        payment = Payment.start(method_type, self.total_amount, installments, installment_amount)
        payment.succeed(charged_amount)
        self.payment = payment

        self.invoice = Invoice.generate(self.total_amount)
        self.tracker = StatusTracker.open()

        now = self._transition(OrderStatus.PAID)
        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                payment_id=str(self.payment.id),
                payment_method=method_type,
                amount=self.total_amount,
                charged_amount=charged_amount,
                transaction_id=self.payment.transaction_id,
                invoice_number=self.invoice.invoice_number,
                tracking_number=self.tracker.tracking_number,
                paid_at=now,
            )
        )

    def record_payment_failure(
        self,
        method_type: str,
        reason: str,
        installments: int = 0,
        installment_amount: float | None = None,
    ) -> None:
        """Mark the order PAYMENT_FAILED. No invoice or tracker is created."""
        self._assert_can_transition(OrderStatus.PAYMENT_FAILED)

        payment = Payment.start(method_type, self.total_amount, installments, installment_amount)
        payment.fail(reason)
        self.payment = payment

        now = self._transition(OrderStatus.PAYMENT_FAILED)
        self.raise_(
            OrderPaymentFailed(
                order_id=str(self.id),
                payment_id=str(self.payment.id),
                payment_method=method_type,
                amount=self.total_amount,
                reason=reason,
                failed_at=now,
            )
        )

    @property
    def has_captured_payment(self) -> bool:
        return self.payment is not None and self.payment.is_successful

    def record_refund(self) -> None:
        """Mark the captured payment as refunded."""
        current = OrderStatus(self.status)
        if current not in _REFUNDABLE_STATES:
            raise RefundUnavailableError({"status": [f"Cannot refund an order in {current.value} state"]})
        if not self.has_captured_payment:
            raise RefundUnavailableError({"payment": ["Order has no successful payment to refund"]})

        self.payment.mark_refunded()
        now = datetime.now(UTC)
        self.updated_at = now
        self.raise_(
            OrderRefunded(
                order_id=str(self.id),
                payment_id=str(self.payment.id),
                amount=self.payment.amount,
                transaction_id=self.payment.transaction_id,
                refunded_at=now,
            )
        )

    def record_cash_collection(self, agent_id: str) -> None:
        """Record that cash was collected at the door (cash on delivery only)."""
        current = OrderStatus(self.status)
        if current not in (OrderStatus.SHIPPED, OrderStatus.DELIVERED):
            raise InvalidTransitionError(
                {"status": [f"Cash can only be collected once the order is shipped, not in {current.value} state"]}
            )
        if self.payment is None:
            raise InvalidTransitionError({"payment": ["Order has no payment to collect"]})

        self.payment.mark_collected(agent_id)
        self.updated_at = self.payment.collected_at
        self.raise_(
            CashCollected(
                order_id=str(self.id),
                payment_id=str(self.payment.id),
                agent_id=agent_id,
                amount=self.payment.amount,
                collected_at=self.payment.collected_at,
            )
        )

    # -------------------------------------------------------------------
    # Fulfilment
    # -------------------------------------------------------------------
    def mark_processing(self) -> None:
        now = self._transition(OrderStatus.PROCESSING)
        self.raise_(OrderProcessing(order_id=str(self.id), started_at=now))

    def mark_shipped(self, courier_partner: str | None = None) -> None:
        self._assert_can_transition(OrderStatus.SHIPPED)
        if courier_partner:
            self.tracker.courier_partner = courier_partner
        now = self._transition(OrderStatus.SHIPPED)
        self.raise_(
            OrderShipped(
                order_id=str(self.id),
                tracking_number=self.tracker.tracking_number,
                courier_partner=self.tracker.courier_partner,
                shipped_at=now,
            )
        )

    def mark_delivered(self) -> None:
        now = self._transition(OrderStatus.DELIVERED)
        self.raise_(OrderDelivered(order_id=str(self.id), delivered_at=now))

    def mark_returned(self, reason: str | None = None) -> None:
        now = self._transition(OrderStatus.RETURNED)
        self.raise_(OrderReturned(order_id=str(self.id), reason=reason, returned_at=now))

    def advance_shipment(
        self,
        new_status: ShipmentStatus,
        description: str | None = None,
        location: str | None = None,
    ) -> bool:
        """Append a shipment status to the tracker. Returns True on milestones."""
        if self.tracker is None:
            raise InvalidTransitionError({"tracker": ["Order has no shipment tracker until it is paid"]})

        milestone = self.tracker.advance(new_status, description, location)
        entry = self.tracker.latest_entry
        self.updated_at = entry.recorded_at
        self.raise_(
            ShipmentStatusUpdated(
                order_id=str(self.id),
                tracking_number=self.tracker.tracking_number,
                status=new_status.value,
                description=entry.description,
                location=location,
                milestone=milestone,
                updated_at=entry.recorded_at,
            )
        )
        return milestone

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel(self, reason: str | None = None) -> None:
        """Cancel the order. Refunding a captured payment is the caller's job."""
        current = OrderStatus(self.status)
        if current not in CANCELLABLE_STATES:
            raise NotCancellableError(
                {
                    "status": [
                        f"Cannot cancel order in {current.value} state. "
                        f"Cancellation is only allowed from: "
                        f"{', '.join(sorted(s.value for s in CANCELLABLE_STATES))}"
                    ]
                }
            )

        now = self._transition(OrderStatus.CANCELLED)
        self.cancellation_reason = reason
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                previous_status=current.value,
                reason=reason,
                payment_captured=self.has_captured_payment,
                cancelled_at=now,
            )
        )
