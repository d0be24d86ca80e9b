"""Credit card instrument.

The only instrument with a running balance: every accepted charge reduces
``available_credit``. Instruments may be shared by concurrent orders, so the
balance is only read and written while holding the card's lock.

EMI (equal monthly installment) financing charges the first installment
instead of the full principal. The installment uses the reducing-balance
formula at a fixed monthly rate derived from a 12% nominal annual rate.
"""

import threading
from datetime import date

import structlog

from payments.method.port import CardPaymentMethod, CardStatus, PaymentMethodType

logger = structlog.get_logger(__name__)

EMI_ANNUAL_RATE = 0.12
MINIMUM_PAYMENT_RATE = 0.05


def installment_amount(principal: float, months: int, annual_rate: float = EMI_ANNUAL_RATE) -> float:
    """Return the monthly installment for ``principal`` over ``months``."""
    if months <= 0:
        raise ValueError(f"Installment count must be positive, got {months}")
    rate = annual_rate / 12
    if rate == 0:
        return principal / months
    growth = (1 + rate) ** months
    return principal * rate * growth / (growth - 1)


class CreditCard(CardPaymentMethod):
    method_type = PaymentMethodType.CREDIT_CARD

    def __init__(
        self,
        amount: float,
        cardholder_name: str,
        card_number: str,
        credit_limit: float,
        available_credit: float | None = None,
        expiry: date | None = None,
        status: CardStatus = CardStatus.ACTIVE,
    ) -> None:
        super().__init__(amount, cardholder_name, card_number, expiry=expiry, status=status)
        self.credit_limit = credit_limit
        self.available_credit = credit_limit if available_credit is None else available_credit
        self.minimum_payment = self._minimum_payment()
        self._lock = threading.Lock()

    @property
    def transaction_limit(self) -> float:
        return self.available_credit

    @property
    def used_credit(self) -> float:
        return self.credit_limit - self.available_credit

    def _minimum_payment(self) -> float:
        return self.used_credit * MINIMUM_PAYMENT_RATE

    def installment_amount(self, months: int) -> float:
        """Installment for financing this card's ``amount`` over ``months``."""
        return installment_amount(self.amount, months)

    def charge(self, amount: float) -> bool:
        if not self.is_active:
            logger.info("Credit card inactive", card_last4=self.last4, status=self.status.value)
            return False

        with self._lock:
            if amount > self.available_credit:
                logger.info(
                    "Credit card limit exceeded",
                    card_last4=self.last4,
                    amount=amount,
                    available_credit=self.transaction_limit,
                )
                return False
            self.available_credit -= amount
            self.minimum_payment = self._minimum_payment()

        return True
