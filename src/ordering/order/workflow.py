"""Order workflow — coordinates the order lifecycle across its collaborators.

Flow:
    1. create()  → Order in PENDING_PAYMENT, total frozen from the snapshot
    2. pay()     → charge the instrument once
       2a. accepted → PAID, Invoice + StatusTracker built, confirmation sent
       2b. declined → PAYMENT_FAILED, decline returned in the outcome
    3. start_processing() / ship() / deliver() / record_return()
       move the order and its tracker forward; milestones notify the customer
    4. cancel()  → CANCELLED, then a best-effort refund of any captured payment

Validation failures raise before anything is mutated. Notifications are
best-effort: a failed or crashing trigger is logged and never undoes the
state change that asked for it.

The workflow is not safe for concurrent calls on the same order; different
orders may be processed in parallel.
"""

import math
from dataclasses import dataclass

import structlog
from notifications.notification import NotificationKind
from notifications.templates import render
from notifications.trigger import NotificationTrigger
from payments.method import CreditCard, PaymentMethod, PaymentMethodType
from protean.exceptions import ValidationError

from ordering.errors import (
    AmountMismatchError,
    ChargeDeclinedError,
    InvalidTransitionError,
    NotCancellableError,
    RefundUnavailableError,
)
from ordering.order.order import Order, OrderStatus
from ordering.order.tracking import ShipmentStatus

logger = structlog.get_logger(__name__)

AMOUNT_TOLERANCE = 1e-9


@dataclass(frozen=True)
class PaymentOutcome:
    """Result of a payment attempt."""

    order: Order
    success: bool
    charged_amount: float
    transaction_id: str | None = None
    error: ChargeDeclinedError | None = None
    notified: bool = False


@dataclass(frozen=True)
class CancellationOutcome:
    """Result of a cancellation.

    ``refunded`` is None when there was nothing to refund, otherwise whether
    the refund went through. A failed refund leaves the order CANCELLED.
    """

    order: Order
    refunded: bool | None = None
    refund_error: RefundUnavailableError | None = None


@dataclass(frozen=True)
class ShipmentUpdate:
    status: ShipmentStatus
    milestone: bool
    notified: bool = False


def _same_amount(left: float, right: float) -> bool:
    # Tolerates float representation noise only; a sub-cent difference is a mismatch
    return math.isclose(left, right, rel_tol=0.0, abs_tol=AMOUNT_TOLERANCE)


class OrderWorkflow:
    """Application service driving orders through their lifecycle.

    Args:
        notifier: Where customer notifications go. Without one, the workflow
                  runs silently.
    """

    def __init__(self, notifier: NotificationTrigger | None = None) -> None:
        self.notifier = notifier
        self._instruments: dict[str, PaymentMethod] = {}

    def instrument_for(self, order: Order) -> PaymentMethod | None:
        """The instrument that paid ``order`` through this workflow, if any."""
        return self._instruments.get(str(order.id))

    # -------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------
    def create(
        self,
        customer_id: str,
        items: list[dict],
        delivery_address: dict | None = None,
        contact: str | None = None,
    ) -> Order:
        order = Order.create(
            customer_id=customer_id,
            items_data=items,
            delivery_address=delivery_address,
            contact=contact,
        )
        logger.info(
            "Order created",
            order_id=str(order.id),
            customer_id=str(customer_id),
            total_amount=order.total_amount,
            item_count=len(items),
        )
        return order

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def pay(self, order: Order, payment_method: PaymentMethod) -> PaymentOutcome:
        """Charge the full order total to ``payment_method``."""
        self._assert_payable(order, payment_method)
        return self._settle(order, payment_method, charge_amount=order.total_amount)

    def pay_in_installments(self, order: Order, credit_card: CreditCard, months: int) -> PaymentOutcome:
        """Finance the order total on a credit card and charge the first installment.

        The card's ``amount`` is the financed principal and must equal the
        order total; the amount actually charged is the monthly installment.
        """
        if not isinstance(credit_card, CreditCard):
            raise ValidationError({"payment_method": ["Installments are only available on credit cards"]})
        if months <= 0:
            raise ValidationError({"installments": ["Installment count must be positive"]})
        self._assert_payable(order, credit_card)

        installment = round(credit_card.installment_amount(months), 2)
        return self._settle(
            order,
            credit_card,
            charge_amount=installment,
            installments=months,
            installment_amount=installment,
        )

    def _assert_payable(self, order: Order, payment_method: PaymentMethod) -> None:
        if not _same_amount(payment_method.amount, order.total_amount):
            raise AmountMismatchError(
                {"amount": [f"Payment amount {payment_method.amount} does not match order total {order.total_amount}"]}
            )
        current = OrderStatus(order.status)
        if current != OrderStatus.PENDING_PAYMENT:
            raise InvalidTransitionError({"status": [f"Order in {current.value} state cannot be paid"]})

    def _settle(
        self,
        order: Order,
        payment_method: PaymentMethod,
        charge_amount: float,
        installments: int = 0,
        installment_amount: float | None = None,
    ) -> PaymentOutcome:
        method_type = payment_method.method_type.value
        order_id = str(order.id)

        if not payment_method.charge(charge_amount):
            reason = f"{method_type} declined a charge of {charge_amount:.2f}"
            order.record_payment_failure(method_type, reason, installments, installment_amount)
            logger.warning(
                "Payment declined",
                order_id=order_id,
                amount=charge_amount,
                **payment_method.describe(),
            )
            return PaymentOutcome(
                order=order,
                success=False,
                charged_amount=0.0,
                error=ChargeDeclinedError({"payment": [reason]}),
            )

        self._instruments[order_id] = payment_method
        order.record_payment_success(method_type, charge_amount, installments, installment_amount)
        logger.info(
            "Order paid",
            order_id=order_id,
            payment_method=method_type,
            amount=charge_amount,
            transaction_id=order.payment.transaction_id,
            invoice_number=order.invoice.invoice_number,
        )

        notified = self._notify(
            order,
            NotificationKind.ORDER_PLACED,
            {"order_id": order_id, "final_amount": order.invoice.final_amount},
            attachments=[order.invoice.invoice_url],
        )
        return PaymentOutcome(
            order=order,
            success=True,
            charged_amount=charge_amount,
            transaction_id=order.payment.transaction_id,
            notified=notified,
        )

    def collect_cash(self, order: Order, agent_id: str) -> None:
        """Record cash collected by a delivery agent for a cash-on-delivery order."""
        if order.payment is None or order.payment.method_type != PaymentMethodType.CASH.value:
            raise InvalidTransitionError({"payment": ["Only cash-on-delivery orders can have cash collected"]})

        order.record_cash_collection(agent_id)
        instrument = self.instrument_for(order)
        if instrument is not None:
            instrument.mark_collected(agent_id)
        logger.info("Cash collected", order_id=str(order.id), agent_id=agent_id)

    # -------------------------------------------------------------------
    # Refunds & cancellation
    # -------------------------------------------------------------------
    def refund(self, order: Order):
        """Refund the captured payment of a cancelled or returned order.

        Raises ``RefundUnavailableError`` when there is nothing to refund or
        the instrument cannot reverse the charge (cash). Returns the refunded
        Payment record.
        """
        if not order.has_captured_payment:
            raise RefundUnavailableError({"payment": ["Order has no successful payment to refund"]})
        if OrderStatus(order.status) not in (OrderStatus.CANCELLED, OrderStatus.RETURNED):
            raise RefundUnavailableError({"status": [f"Cannot refund an order in {order.status} state"]})

        instrument = self.instrument_for(order)
        if instrument is None:
            raise RefundUnavailableError({"payment": ["No payment instrument on record for this order"]})
        if not instrument.refund():
            raise RefundUnavailableError(
                {"payment": [f"{order.payment.method_type} payments must be refunded manually"]}
            )

        order.record_refund()
        logger.info(
            "Payment refunded",
            order_id=str(order.id),
            amount=order.payment.amount,
            transaction_id=order.payment.transaction_id,
        )
        return order.payment

    def cancel(self, order: Order, reason: str | None = None) -> CancellationOutcome:
        """Cancel the order and refund any captured payment, best-effort."""
        if not order.can_be_cancelled():
            raise NotCancellableError({"status": [f"Order in {order.status} state cannot be cancelled"]})

        order.cancel(reason)
        logger.info("Order cancelled", order_id=str(order.id), reason=reason)

        if not order.has_captured_payment:
            return CancellationOutcome(order=order)

        try:
            self.refund(order)
        except RefundUnavailableError as exc:
            logger.warning(
                "Refund failed after cancellation",
                order_id=str(order.id),
                payment_method=order.payment.method_type,
                error=exc.messages,
            )
            return CancellationOutcome(order=order, refunded=False, refund_error=exc)

        return CancellationOutcome(order=order, refunded=True)

    # -------------------------------------------------------------------
    # Fulfilment
    # -------------------------------------------------------------------
    def start_processing(self, order: Order) -> ShipmentUpdate:
        order.mark_processing()
        return self.advance_shipment(order, ShipmentStatus.PROCESSING)

    def ship(self, order: Order, courier_partner: str | None = None) -> ShipmentUpdate:
        order.mark_shipped(courier_partner)
        return self.advance_shipment(order, ShipmentStatus.SHIPPED)

    def deliver(self, order: Order) -> ShipmentUpdate:
        order.mark_delivered()
        return self.advance_shipment(order, ShipmentStatus.DELIVERED)

    def record_return(self, order: Order, reason: str | None = None) -> ShipmentUpdate:
        order.mark_returned(reason)
        update = self.advance_shipment(order, ShipmentStatus.RETURNED, description=reason)
        self._notify(order, NotificationKind.RETURN_INITIATED, {"order_id": str(order.id), "reason": reason})
        return update

    def advance_shipment(
        self,
        order: Order,
        new_status: ShipmentStatus,
        description: str | None = None,
        location: str | None = None,
    ) -> ShipmentUpdate:
        """Record a shipment status and notify the customer on milestones."""
        milestone = order.advance_shipment(new_status, description, location)
        logger.info(
            "Shipment status updated",
            order_id=str(order.id),
            status=new_status.value,
            milestone=milestone,
        )

        notified = False
        if milestone:
            kind = NotificationKind.SHIPMENT_UPDATE
            if new_status == ShipmentStatus.DELIVERED:
                kind = NotificationKind.DELIVERY
            notified = self._notify(
                order,
                kind,
                {"order_id": str(order.id), "status_description": new_status.description},
            )
        return ShipmentUpdate(status=new_status, milestone=milestone, notified=notified)

    # -------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------
    def _notify(
        self,
        order: Order,
        kind: NotificationKind,
        context: dict,
        attachments: list[str] | None = None,
    ) -> bool:
        if self.notifier is None or not order.contact:
            logger.debug("Notification skipped", order_id=str(order.id), kind=kind.value)
            return False

        message = render(kind, context)
        try:
            sent = self.notifier.notify(order.contact, message["subject"], message["body"], kind, attachments)
        except Exception as exc:
            logger.error(
                "Notification trigger raised",
                order_id=str(order.id),
                kind=kind.value,
                error=str(exc),
            )
            return False

        if not sent:
            logger.warning("Notification not delivered", order_id=str(order.id), kind=kind.value)
        return bool(sent)
