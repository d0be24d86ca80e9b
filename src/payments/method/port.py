"""Payment method port (abstract interface).

Defines the capability every payment instrument offers to the ordering
workflow: ``charge`` and ``refund``. Both are plain decisions that return a
boolean and never retry. Concrete instruments live next to this module:
``Cash``, ``DebitCard`` and ``CreditCard``.
"""

from abc import ABC, abstractmethod
from datetime import UTC, date, datetime
from enum import Enum


class PaymentMethodType(Enum):
    CASH = "cash"
    DEBIT_CARD = "debit_card"
    CREDIT_CARD = "credit_card"


class CardStatus(Enum):
    ACTIVE = "Active"
    EXPIRED = "Expired"
    BLOCKED = "Blocked"


class PaymentMethod(ABC):
    """Abstract payment instrument.

    ``amount`` is what the instrument is expected to pay; the workflow checks
    it against the order total before charging.
    """

    method_type: PaymentMethodType

    def __init__(self, amount: float) -> None:
        self.amount = amount

    @abstractmethod
    def charge(self, amount: float) -> bool:
        """Attempt to collect ``amount``. Returns True when accepted."""
        ...

    @abstractmethod
    def refund(self) -> bool:
        """Attempt to reverse a previous charge. Returns True when accepted."""
        ...

    def describe(self) -> dict:
        """Log-safe summary of the instrument."""
        return {"payment_method": self.method_type.value}


def mask_card_number(card_number: str) -> str:
    """Keep only the last four digits of a card number."""
    digits = card_number.replace(" ", "").replace("-", "")
    return f"**** **** **** {digits[-4:]}"


class CardPaymentMethod(PaymentMethod):
    """Shared instrument data for debit and credit cards."""

    def __init__(
        self,
        amount: float,
        cardholder_name: str,
        card_number: str,
        expiry: date | None = None,
        status: CardStatus = CardStatus.ACTIVE,
    ) -> None:
        super().__init__(amount)
        self.cardholder_name = cardholder_name
        self.card_number = mask_card_number(card_number)
        self.expiry = expiry
        self.status = status

    @property
    def last4(self) -> str:
        return self.card_number[-4:]

    @property
    def is_active(self) -> bool:
        if self.status != CardStatus.ACTIVE:
            return False
        if self.expiry is not None and self.expiry < datetime.now(UTC).date():
            return False
        return True

    def block(self) -> None:
        self.status = CardStatus.BLOCKED

    @property
    @abstractmethod
    def transaction_limit(self) -> float:
        """Largest single charge the card can currently accept."""
        ...

    def describe(self) -> dict:
        return {
            **super().describe(),
            "card_last4": self.last4,
            "card_status": self.status.value,
            "transaction_limit": self.transaction_limit,
        }

    def refund(self) -> bool:
        # Card refunds are a gateway credit and always accepted
        return True
