"""Payment instruments accepted by the ordering workflow.

The set of instruments is closed: ``Cash``, ``DebitCard`` and ``CreditCard``,
all implementing the ``PaymentMethod`` port.
"""

from payments.method.cash import Cash
from payments.method.credit_card import CreditCard, installment_amount
from payments.method.debit_card import DebitCard
from payments.method.port import CardStatus, PaymentMethod, PaymentMethodType

__all__ = [
    "CardStatus",
    "Cash",
    "CreditCard",
    "DebitCard",
    "PaymentMethod",
    "PaymentMethodType",
    "installment_amount",
]
