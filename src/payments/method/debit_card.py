"""Debit card instrument.

The daily limit is checked independently on every charge: no running total
is kept, so two charges below the limit both succeed.
"""

from datetime import date

import structlog

from payments.method.port import CardPaymentMethod, CardStatus, PaymentMethodType

logger = structlog.get_logger(__name__)

DEFAULT_DAILY_LIMIT = 50000.0


class DebitCard(CardPaymentMethod):
    method_type = PaymentMethodType.DEBIT_CARD

    def __init__(
        self,
        amount: float,
        cardholder_name: str,
        card_number: str,
        linked_account_number: str | None = None,
        daily_limit: float = DEFAULT_DAILY_LIMIT,
        expiry: date | None = None,
        status: CardStatus = CardStatus.ACTIVE,
    ) -> None:
        super().__init__(amount, cardholder_name, card_number, expiry=expiry, status=status)
        self.linked_account_number = linked_account_number
        self.daily_limit = daily_limit

    @property
    def transaction_limit(self) -> float:
        return self.daily_limit

    def charge(self, amount: float) -> bool:
        if not self.is_active:
            logger.info("Debit card inactive", card_last4=self.last4, status=self.status.value)
            return False
        if amount > self.daily_limit:
            logger.info(
                "Debit card daily limit exceeded",
                card_last4=self.last4,
                amount=amount,
                daily_limit=self.transaction_limit,
            )
            return False
        return True
