"""Invoice — entity owned by the Order.

A pure derivation from the order total, computed once when the order is paid
and never recalculated:

    tax      = 18% of the total
    shipping = 0 above the free-shipping threshold, flat fee otherwise
    discount = 0 (no discount rules yet)
    final    = total + tax + shipping - discount

The invoice document is published under INVOICE_BASE_URL (environment) as
``<base>/<invoice_number>.pdf``.
"""

import os
from datetime import UTC, datetime
from uuid import uuid4

from protean.fields import DateTime, Float, String

from ordering.domain import ordering

TAX_RATE = 0.18
FREE_SHIPPING_THRESHOLD = 500.0
FLAT_SHIPPING_FEE = 40.0
DEFAULT_INVOICE_BASE_URL = "https://invoices.shopstream.example"


def calculate_tax(amount: float) -> float:
    return round(amount * TAX_RATE, 2)


def calculate_shipping(amount: float) -> float:
    return 0.0 if amount > FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING_FEE


def calculate_discount(amount: float) -> float:  # noqa: ARG001
    return 0.0


def invoice_url_for(invoice_number: str) -> str:
    base = os.environ.get("INVOICE_BASE_URL", DEFAULT_INVOICE_BASE_URL).rstrip("/")
    return f"{base}/{invoice_number}.pdf"


@ordering.entity(part_of="Order")
class Invoice:
    invoice_number = String(required=True, max_length=50)
    amount = Float(required=True, min_value=0.0)
    tax = Float(default=0.0)
    shipping = Float(default=0.0)
    discount = Float(default=0.0)
    final_amount = Float(default=0.0)
    invoice_url = String(max_length=255)
    issued_at = DateTime()

    @classmethod
    def generate(cls, amount: float):
        """Build the invoice for an order total."""
        tax = calculate_tax(amount)
        shipping = calculate_shipping(amount)
        discount = calculate_discount(amount)
        invoice_number = f"INV-{uuid4().hex[:8].upper()}"
        return cls(
            invoice_number=invoice_number,
            amount=amount,
            tax=tax,
            shipping=shipping,
            discount=discount,
            final_amount=round(amount + tax + shipping - discount, 2),
            invoice_url=invoice_url_for(invoice_number),
            issued_at=datetime.now(UTC),
        )
