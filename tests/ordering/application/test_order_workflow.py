"""Tests for OrderWorkflow — payment, cancellation, fulfilment and notifications."""

import pytest
from notifications.notification import NotificationKind
from ordering.errors import (
    AmountMismatchError,
    ChargeDeclinedError,
    InvalidCartError,
    InvalidTransitionError,
    NotCancellableError,
    RefundUnavailableError,
)
from ordering.order.order import OrderStatus
from ordering.order.payment import PaymentStatus
from ordering.order.tracking import ShipmentStatus
from ordering.order.workflow import OrderWorkflow, _same_amount
from payments.method import Cash, CreditCard, DebitCard
from protean.exceptions import ValidationError


def _debit_card(amount=200.0, **kwargs):
    return DebitCard(amount, "Asha Rao", "4111 1111 1111 1111", **kwargs)


def _credit_card(amount=200.0, credit_limit=1000.0, **kwargs):
    return CreditCard(amount, "Asha Rao", "5500-0000-0000-0004", credit_limit=credit_limit, **kwargs)


class TestCreate:
    def test_create_order(self, workflow, cart_items, delivery_address):
        order = workflow.create("cust-001", cart_items, delivery_address, contact="buyer@example.com")
        assert order.status == OrderStatus.PENDING_PAYMENT.value
        assert order.total_amount == 200.0

    def test_create_from_empty_cart(self, workflow, delivery_address):
        with pytest.raises(InvalidCartError):
            workflow.create("cust-001", [], delivery_address)


class TestPay:
    def test_debit_card_payment(self, workflow, make_order, notifier):
        order = make_order()
        outcome = workflow.pay(order, _debit_card())

        assert outcome.success
        assert outcome.charged_amount == 200.0
        assert outcome.transaction_id == order.payment.transaction_id
        assert order.status == OrderStatus.PAID.value
        assert order.invoice.tax == 36.0
        assert order.invoice.shipping == 40.0
        assert order.invoice.final_amount == 276.0
        assert order.tracker.current_status == ShipmentStatus.ORDER_PLACED.value

    def test_confirmation_sent_on_payment(self, workflow, make_order, notifier):
        order = make_order()
        outcome = workflow.pay(order, _debit_card())

        assert outcome.notified
        assert notifier.kinds == [NotificationKind.ORDER_PLACED]
        call = notifier.calls[0]
        assert call["recipient"] == "buyer@example.com"
        assert "276.00" in call["body"]

    def test_credit_card_over_limit_declined(self, workflow, make_order, notifier):
        order = make_order()
        card = _credit_card(credit_limit=1000.0, available_credit=100.0)
        outcome = workflow.pay(order, card)

        assert not outcome.success
        assert outcome.charged_amount == 0.0
        assert isinstance(outcome.error, ChargeDeclinedError)
        assert order.status == OrderStatus.PAYMENT_FAILED.value
        assert order.payment.status == PaymentStatus.FAILED.value
        assert card.available_credit == 100.0
        assert order.invoice is None
        assert order.tracker is None
        assert notifier.calls == []

    def test_decline_logged_with_card_details(self, workflow, make_order, monkeypatch):
        recorded = []

        class _Logger:
            def warning(self, event, **fields):
                recorded.append((event, fields))

            def info(self, event, **fields):
                pass

        monkeypatch.setattr("ordering.order.workflow.logger", _Logger())
        card = _credit_card(credit_limit=1000.0, available_credit=100.0)
        workflow.pay(make_order(), card)

        event, fields = recorded[0]
        assert event == "Payment declined"
        assert fields["card_last4"] == "0004"
        assert fields["transaction_limit"] == 100.0
        assert fields["payment_method"] == "credit_card"

    def test_credit_card_payment_reduces_available_credit(self, workflow, make_order):
        order = make_order()
        card = _credit_card(credit_limit=1000.0)
        workflow.pay(order, card)

        assert card.available_credit == 800.0
        assert card.used_credit == 200.0

    def test_debit_card_over_daily_limit_declined(self, workflow, make_order):
        order = make_order()
        outcome = workflow.pay(order, _debit_card(daily_limit=150.0))
        assert not outcome.success
        assert order.status == OrderStatus.PAYMENT_FAILED.value

    def test_cash_payment_accepted(self, workflow, make_order):
        order = make_order()
        outcome = workflow.pay(order, Cash(200.0))
        assert outcome.success
        assert order.payment.method_type == "cash"

    def test_amount_mismatch_leaves_order_untouched(self, workflow, make_order, notifier):
        order = make_order()
        card = _credit_card(amount=150.0)

        with pytest.raises(AmountMismatchError):
            workflow.pay(order, card)

        assert order.status == OrderStatus.PENDING_PAYMENT.value
        assert order.payment is None
        assert card.available_credit == 1000.0
        assert notifier.calls == []

    def test_float_noise_in_total_is_not_a_mismatch(self, workflow, make_order):
        order = make_order(items=[{"product_id": "p", "quantity": 3, "unit_price": 0.1}])
        outcome = workflow.pay(order, Cash(0.3))
        assert outcome.success

    def test_sub_cent_difference_rejected(self, workflow, make_order, notifier):
        order = make_order()

        with pytest.raises(AmountMismatchError):
            workflow.pay(order, Cash(200.004))

        assert order.status == OrderStatus.PENDING_PAYMENT.value
        assert order.payment is None
        assert notifier.calls == []

    @pytest.mark.parametrize(("left", "right"), [(200.004, 200.0), (0.125, 0.12), (99.999, 100.0)])
    def test_unequal_amounts_do_not_match(self, left, right):
        assert not _same_amount(left, right)
        assert not _same_amount(right, left)

    def test_confirmation_carries_invoice(self, workflow, make_order, notifier):
        order = make_order()
        workflow.pay(order, _debit_card())

        assert notifier.calls[0]["attachments"] == [order.invoice.invoice_url]
        assert order.invoice.invoice_url.endswith(f"/{order.invoice.invoice_number}.pdf")

    def test_order_paid_only_once(self, workflow, make_order):
        order = make_order()
        workflow.pay(order, _debit_card())
        card = _credit_card()

        with pytest.raises(InvalidTransitionError):
            workflow.pay(order, card)
        assert card.available_credit == 1000.0

    def test_failed_order_cannot_be_paid_again(self, workflow, make_order):
        order = make_order()
        workflow.pay(order, _debit_card(daily_limit=10.0))
        with pytest.raises(InvalidTransitionError):
            workflow.pay(order, _debit_card())

    def test_no_notification_without_contact(self, workflow, make_order, notifier):
        order = make_order(contact=None)
        outcome = workflow.pay(order, _debit_card())
        assert outcome.success
        assert not outcome.notified
        assert notifier.calls == []

    def test_notification_failure_does_not_undo_payment(self, make_order, declining_notifier):
        workflow = OrderWorkflow(notifier=declining_notifier)
        order = make_order()
        outcome = workflow.pay(order, _debit_card())
        assert outcome.success
        assert not outcome.notified
        assert order.status == OrderStatus.PAID.value

    def test_notifier_exception_is_swallowed(self, make_order, exploding_notifier):
        workflow = OrderWorkflow(notifier=exploding_notifier)
        order = make_order()
        outcome = workflow.pay(order, _debit_card())
        assert outcome.success
        assert not outcome.notified

    def test_workflow_without_notifier(self, make_order):
        workflow = OrderWorkflow()
        outcome = workflow.pay(make_order(), _debit_card())
        assert outcome.success
        assert not outcome.notified


class TestInstallments:
    def test_first_installment_charged(self, workflow, make_order):
        order = make_order(items=[{"product_id": "tv", "quantity": 1, "unit_price": 1200.0}])
        card = _credit_card(amount=1200.0, credit_limit=5000.0)
        outcome = workflow.pay_in_installments(order, card, 12)

        assert outcome.success
        assert outcome.charged_amount == pytest.approx(106.62)
        assert card.available_credit == pytest.approx(5000.0 - 106.62)
        assert order.payment.installments == 12
        assert order.payment.installment_amount == pytest.approx(106.62)
        assert order.payment.amount == 1200.0
        assert order.invoice.amount == 1200.0

    def test_installments_require_credit_card(self, workflow, make_order):
        with pytest.raises(ValidationError):
            workflow.pay_in_installments(make_order(), _debit_card(), 6)

    @pytest.mark.parametrize("months", [0, -3])
    def test_installment_count_must_be_positive(self, workflow, make_order, months):
        order = make_order()
        with pytest.raises(ValidationError):
            workflow.pay_in_installments(order, _credit_card(), months)
        assert order.status == OrderStatus.PENDING_PAYMENT.value

    def test_principal_must_match_total(self, workflow, make_order):
        with pytest.raises(AmountMismatchError):
            workflow.pay_in_installments(make_order(), _credit_card(amount=999.0), 6)


class TestCancel:
    def test_cancel_unpaid_order(self, workflow, make_order):
        order = make_order()
        outcome = workflow.cancel(order, "Ordered by mistake")

        assert order.status == OrderStatus.CANCELLED.value
        assert outcome.refunded is None
        assert outcome.refund_error is None

    def test_cancel_card_payment_refunds(self, workflow, make_order):
        order = make_order()
        workflow.pay(order, _credit_card())
        outcome = workflow.cancel(order)

        assert outcome.refunded is True
        assert order.payment.status == PaymentStatus.REFUNDED.value

    def test_cancel_cash_payment_refund_fails_but_order_cancelled(self, workflow, make_order):
        order = make_order()
        workflow.pay(order, Cash(200.0))
        outcome = workflow.cancel(order)

        assert order.status == OrderStatus.CANCELLED.value
        assert outcome.refunded is False
        assert isinstance(outcome.refund_error, RefundUnavailableError)
        assert order.payment.status == PaymentStatus.SUCCESS.value

    def test_cancel_processing_order(self, workflow, make_order):
        order = make_order()
        workflow.pay(order, _debit_card())
        workflow.start_processing(order)
        outcome = workflow.cancel(order)
        assert order.status == OrderStatus.CANCELLED.value
        assert outcome.refunded is True

    def test_cancel_shipped_order_rejected(self, workflow, make_order):
        order = make_order()
        workflow.pay(order, _debit_card())
        workflow.start_processing(order)
        workflow.ship(order)

        with pytest.raises(NotCancellableError):
            workflow.cancel(order)
        assert order.status == OrderStatus.SHIPPED.value


class TestRefund:
    def test_refund_returned_order(self, workflow, make_order):
        order = make_order()
        workflow.pay(order, _debit_card())
        workflow.start_processing(order)
        workflow.ship(order)
        workflow.record_return(order, "Damaged")

        payment = workflow.refund(order)
        assert payment.status == PaymentStatus.REFUNDED.value

    def test_refund_active_order_rejected(self, workflow, make_order):
        order = make_order()
        workflow.pay(order, _debit_card())
        with pytest.raises(RefundUnavailableError):
            workflow.refund(order)

    def test_refund_without_payment_rejected(self, workflow, make_order):
        order = make_order()
        workflow.cancel(order)
        with pytest.raises(RefundUnavailableError):
            workflow.refund(order)

    def test_refund_needs_known_instrument(self, workflow, make_order):
        order = make_order()
        OrderWorkflow().pay(order, _debit_card())
        order.cancel()
        with pytest.raises(RefundUnavailableError):
            workflow.refund(order)


class TestFulfilment:
    def _paid(self, workflow, make_order):
        order = make_order()
        workflow.pay(order, _debit_card())
        return order

    def test_full_happy_path(self, workflow, make_order, notifier):
        order = self._paid(workflow, make_order)
        workflow.start_processing(order)
        workflow.ship(order, courier_partner="BlueDart")
        workflow.advance_shipment(order, ShipmentStatus.IN_TRANSIT, location="Nagpur hub")
        workflow.advance_shipment(order, ShipmentStatus.OUT_FOR_DELIVERY)
        workflow.deliver(order)

        assert order.status == OrderStatus.DELIVERED.value
        assert order.tracker.courier_partner == "BlueDart"
        assert [e.status for e in order.tracker.history] == [
            ShipmentStatus.ORDER_PLACED.value,
            ShipmentStatus.PROCESSING.value,
            ShipmentStatus.SHIPPED.value,
            ShipmentStatus.IN_TRANSIT.value,
            ShipmentStatus.OUT_FOR_DELIVERY.value,
            ShipmentStatus.DELIVERED.value,
        ]
        assert notifier.kinds == [
            NotificationKind.ORDER_PLACED,
            NotificationKind.SHIPMENT_UPDATE,
            NotificationKind.SHIPMENT_UPDATE,
            NotificationKind.DELIVERY,
        ]

    def test_non_milestone_does_not_notify(self, workflow, make_order, notifier):
        order = self._paid(workflow, make_order)
        notifier.calls.clear()
        update = workflow.advance_shipment(order, ShipmentStatus.IN_TRANSIT)
        assert not update.milestone
        assert not update.notified
        assert notifier.calls == []

    def test_delivery_failed_notifies(self, workflow, make_order, notifier):
        order = self._paid(workflow, make_order)
        notifier.calls.clear()
        update = workflow.advance_shipment(order, ShipmentStatus.DELIVERY_FAILED)

        assert update.milestone
        assert update.notified
        assert notifier.calls[0]["body"].endswith(ShipmentStatus.DELIVERY_FAILED.description)

    def test_shipment_message_describes_status(self, workflow, make_order, notifier):
        order = self._paid(workflow, make_order)
        workflow.start_processing(order)
        workflow.ship(order)
        call = notifier.calls[-1]
        assert call["subject"] == "Order Status Update"
        assert call["body"] == f"Your order {order.id} is shipped"

    def test_ship_requires_processing(self, workflow, make_order):
        order = self._paid(workflow, make_order)
        with pytest.raises(InvalidTransitionError):
            workflow.ship(order)

    def test_return_notifies_customer(self, workflow, make_order, notifier):
        order = self._paid(workflow, make_order)
        workflow.start_processing(order)
        workflow.ship(order)
        workflow.record_return(order, "Wrong size")

        assert order.status == OrderStatus.RETURNED.value
        assert notifier.kinds[-1] == NotificationKind.RETURN_INITIATED
        assert "Wrong size" in notifier.calls[-1]["body"]
        assert order.tracker.latest_entry.description == "Wrong size"


class TestCollectCash:
    def test_collect_cash_after_shipping(self, workflow, make_order):
        order = make_order()
        cash = Cash(200.0)
        workflow.pay(order, cash)
        workflow.start_processing(order)
        workflow.ship(order)
        workflow.collect_cash(order, "agent-42")

        assert order.payment.collected_by == "agent-42"
        assert cash.collected
        assert cash.collected_by == "agent-42"

    def test_collect_cash_before_shipping_rejected(self, workflow, make_order):
        order = make_order()
        workflow.pay(order, Cash(200.0))
        with pytest.raises(InvalidTransitionError):
            workflow.collect_cash(order, "agent-42")

    def test_collect_cash_for_card_payment_rejected(self, workflow, make_order):
        order = make_order()
        workflow.pay(order, _debit_card())
        workflow.start_processing(order)
        workflow.ship(order)
        with pytest.raises(InvalidTransitionError):
            workflow.collect_cash(order, "agent-42")
