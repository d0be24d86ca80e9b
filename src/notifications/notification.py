"""Notification record — the lifecycle of a single message.

Each call to a channel trigger produces one record. It starts PENDING and
settles exactly once:

State Machine:
    PENDING → SENT
    PENDING → FAILED
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean.exceptions import ValidationError


class NotificationKind(Enum):
    ORDER_PLACED = "OrderPlaced"
    PAYMENT_CONFIRMATION = "PaymentConfirmation"
    SHIPMENT_UPDATE = "ShipmentUpdate"
    DELIVERY = "Delivery"
    RETURN_INITIATED = "ReturnInitiated"


class NotificationChannel(Enum):
    EMAIL = "Email"
    SMS = "SMS"


class NotificationStatus(Enum):
    PENDING = "Pending"
    SENT = "Sent"
    FAILED = "Failed"


def generate_notification_id() -> str:
    return f"NTF-{uuid4().hex[:12].upper()}"


@dataclass
class Notification:
    recipient: str
    kind: NotificationKind
    channel: NotificationChannel
    body: str
    subject: str | None = None
    attachments: list[str] = field(default_factory=list)
    notification_id: str = field(default_factory=generate_notification_id)
    status: NotificationStatus = NotificationStatus.PENDING
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    sent_at: datetime | None = None
    message_id: str | None = None
    failure_reason: str | None = None

    def add_attachment(self, path: str) -> None:
        """Attach a file path or URL. Only email carries attachments."""
        if self.status != NotificationStatus.PENDING:
            raise ValidationError({"attachments": ["Cannot attach files to a notification that was already sent"]})
        self.attachments.append(path)

    def _assert_pending(self) -> None:
        if self.status != NotificationStatus.PENDING:
            raise ValidationError({"status": [f"Notification already settled as {self.status.value}"]})

    def mark_sent(self, message_id: str | None = None) -> None:
        self._assert_pending()
        self.status = NotificationStatus.SENT
        self.message_id = message_id
        self.sent_at = datetime.now(UTC)

    def mark_failed(self, reason: str) -> None:
        self._assert_pending()
        self.status = NotificationStatus.FAILED
        self.failure_reason = reason
