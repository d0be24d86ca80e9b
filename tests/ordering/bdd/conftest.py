"""Shared BDD fixtures and step definitions for order checkout."""

import pytest
from ordering.order.order import OrderStatus
from ordering.order.tracking import ShipmentStatus
from pytest_bdd import given, parsers, then


@pytest.fixture()
def payment():
    """Container for the payment outcome and the instrument used."""
    return {"outcome": None, "instrument": None}


@pytest.fixture()
def cancellation():
    return {"outcome": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse('a cart with {quantity:d} units of "{product_id}" at {price:f}'),
    target_fixture="cart",
)
def _(quantity, product_id, price):
    return [{"product_id": product_id, "quantity": quantity, "unit_price": price}]


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(order, status):
    assert order.status == OrderStatus(status).value


@then(parsers.cfparse("the invoice shows tax {tax:f} shipping {shipping:f} and final amount {final:f}"))
def _(order, tax, shipping, final):
    assert order.invoice.tax == pytest.approx(tax)
    assert order.invoice.shipping == pytest.approx(shipping)
    assert order.invoice.final_amount == pytest.approx(final)


@then("the order has no invoice")
def _(order):
    assert order.invoice is None
    assert order.tracker is None


@then(parsers.cfparse('the shipment status is "{status}"'))
def _(order, status):
    assert order.tracker.current_status == ShipmentStatus(status).value


@then(parsers.cfparse("the shipment history has {count:d} entries"))
def _(order, count):
    assert len(order.tracker.history) == count


@then(parsers.cfparse('the customer received an "{kind}" notification'))
def _(notifier, kind):
    assert [k.value for k in notifier.kinds] == [kind]


@then("the customer received no notification")
def _(notifier):
    assert notifier.calls == []


@then(parsers.cfparse("the customer received {count:d} notifications"))
def _(notifier, count):
    assert len(notifier.calls) == count
