"""Cash on delivery.

A cash "charge" only means cash-on-delivery was accepted for the order; the
money is collected later by a delivery agent via ``mark_collected``.
"""

from datetime import UTC, datetime

import structlog

from payments.method.port import PaymentMethod, PaymentMethodType

logger = structlog.get_logger(__name__)


class Cash(PaymentMethod):
    method_type = PaymentMethodType.CASH

    def __init__(self, amount: float) -> None:
        super().__init__(amount)
        self.collected = False
        self.collected_by: str | None = None
        self.collected_at: datetime | None = None

    def charge(self, amount: float) -> bool:  # noqa: ARG002
        return True

    def refund(self) -> bool:
        # Cash cannot be reversed automatically; the embedding system must
        # arrange a manual refund.
        logger.warning("Cash payment cannot be refunded automatically", amount=self.amount)
        return False

    def mark_collected(self, agent_id: str) -> None:
        """Record that ``agent_id`` collected the cash at delivery."""
        self.collected = True
        self.collected_by = agent_id
        self.collected_at = datetime.now(UTC)
        logger.info("Cash collected", agent_id=agent_id, amount=self.amount)
