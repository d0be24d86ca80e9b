"""Payment record — entity owned by the Order.

Records the outcome of charging a payment instrument for the order. The
instrument itself (card, cash) is not part of the order; only what happened
to it is.

State Machine:
    PENDING → SUCCESS → REFUNDED
    PENDING → FAILED

A transaction id is present exactly when the payment is SUCCESS or REFUNDED.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from payments.method.port import PaymentMethodType
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Integer, String

from ordering.domain import ordering


class PaymentStatus(Enum):
    PENDING = "Pending"
    SUCCESS = "Success"
    FAILED = "Failed"
    REFUNDED = "Refunded"


_VALID_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.SUCCESS, PaymentStatus.FAILED},
    PaymentStatus.SUCCESS: {PaymentStatus.REFUNDED},
    PaymentStatus.FAILED: set(),  # Terminal
    PaymentStatus.REFUNDED: set(),  # Terminal
}


def generate_transaction_id() -> str:
    return f"TXN-{uuid4().hex[:12].upper()}"


@ordering.entity(part_of="Order")
class Payment:
    method_type = String(max_length=50, required=True, choices=PaymentMethodType)
    amount = Float(required=True, min_value=0.0)
    charged_amount = Float(min_value=0.0)
    status = String(
        max_length=50,
        choices=PaymentStatus,
        default=PaymentStatus.PENDING.value,
    )
    transaction_id = String(max_length=50)
    failure_reason = String(max_length=500)
    installments = Integer(default=0, min_value=0)
    installment_amount = Float()
    collected_by = String(max_length=100)
    collected_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def start(cls, method_type: str, amount: float, installments: int = 0, installment_amount: float | None = None):
        """Open a PENDING payment record for a charge attempt."""
        now = datetime.now(UTC)
        return cls(
            method_type=method_type,
            amount=amount,
            installments=installments,
            installment_amount=installment_amount,
            created_at=now,
            updated_at=now,
        )

    def _assert_can_transition(self, target_status: PaymentStatus) -> None:
        current = PaymentStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition payment from {current.value} to {target_status.value}"]})

    @property
    def is_successful(self) -> bool:
        return PaymentStatus(self.status) == PaymentStatus.SUCCESS

    def succeed(self, charged_amount: float, transaction_id: str | None = None) -> None:
        self._assert_can_transition(PaymentStatus.SUCCESS)
        self.status = PaymentStatus.SUCCESS.value
        self.charged_amount = charged_amount
        self.transaction_id = transaction_id or generate_transaction_id()
        self.updated_at = datetime.now(UTC)

    def fail(self, reason: str) -> None:
        self._assert_can_transition(PaymentStatus.FAILED)
        self.status = PaymentStatus.FAILED.value
        self.failure_reason = reason
        self.updated_at = datetime.now(UTC)

    def mark_refunded(self) -> None:
        self._assert_can_transition(PaymentStatus.REFUNDED)
        self.status = PaymentStatus.REFUNDED.value
        self.updated_at = datetime.now(UTC)

    def mark_collected(self, agent_id: str) -> None:
        """Record cash collection at the door."""
        if self.method_type != PaymentMethodType.CASH.value:
            raise ValidationError({"method_type": ["Only cash payments can be collected"]})
        if not self.is_successful:
            raise ValidationError({"status": ["Cash can only be collected for an accepted payment"]})
        if self.collected_by:
            raise ValidationError({"collected_by": [f"Cash already collected by {self.collected_by}"]})

        now = datetime.now(UTC)
        self.collected_by = agent_id
        self.collected_at = now
        self.updated_at = now
