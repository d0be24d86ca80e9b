"""Shipment status tracking — entity owned by the Order.

The tracker is created when the order is paid and keeps an append-only
history of shipment states. It does not police transitions: any state can
follow any other, and deciding what is legal is up to the caller. It does
decide which states are milestones worth telling the customer about.
"""

from datetime import UTC, datetime, timedelta
from enum import Enum
from uuid import uuid4

from protean.fields import DateTime, List, String, ValueObject

from ordering.domain import ordering

EXPECTED_DELIVERY_DAYS = 5


class ShipmentStatus(Enum):
    ORDER_PLACED = "Order_Placed"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    IN_TRANSIT = "In_Transit"
    OUT_FOR_DELIVERY = "Out_For_Delivery"
    DELIVERED = "Delivered"
    DELIVERY_FAILED = "Delivery_Failed"
    RETURNED = "Returned"

    @property
    def description(self) -> str:
        """Phrase that completes "Your order ... is ..."."""
        return _DESCRIPTIONS[self]

    @property
    def history_note(self) -> str:
        """Default history description when the caller gives none."""
        return _HISTORY_NOTES[self]


_DESCRIPTIONS = {
    ShipmentStatus.ORDER_PLACED: "placed",
    ShipmentStatus.PROCESSING: "being processed",
    ShipmentStatus.SHIPPED: "shipped",
    ShipmentStatus.IN_TRANSIT: "in transit",
    ShipmentStatus.OUT_FOR_DELIVERY: "out for delivery",
    ShipmentStatus.DELIVERED: "delivered",
    ShipmentStatus.DELIVERY_FAILED: "not delivered yet: the delivery attempt failed",
    ShipmentStatus.RETURNED: "returned",
}

_HISTORY_NOTES = {
    ShipmentStatus.ORDER_PLACED: "Order has been placed successfully",
    ShipmentStatus.PROCESSING: "Order is being processed",
    ShipmentStatus.SHIPPED: "Order has been shipped",
    ShipmentStatus.IN_TRANSIT: "Order is in transit",
    ShipmentStatus.OUT_FOR_DELIVERY: "Order is out for delivery",
    ShipmentStatus.DELIVERED: "Order has been delivered",
    ShipmentStatus.DELIVERY_FAILED: "Delivery attempt failed",
    ShipmentStatus.RETURNED: "Order has been returned",
}

MILESTONE_STATUSES = frozenset(
    {
        ShipmentStatus.SHIPPED,
        ShipmentStatus.OUT_FOR_DELIVERY,
        ShipmentStatus.DELIVERED,
        ShipmentStatus.DELIVERY_FAILED,
    }
)


def is_milestone(status: ShipmentStatus) -> bool:
    return status in MILESTONE_STATUSES


def generate_tracking_number() -> str:
    return f"TRK{uuid4().hex[:10].upper()}"


@ordering.value_object(part_of="Order")
class StatusEntry:
    """One line of shipment history."""

    status = String(required=True, max_length=50, choices=ShipmentStatus)
    description = String(max_length=500)
    location = String(max_length=200)
    recorded_at = DateTime(required=True)


def _entry(status: ShipmentStatus, description: str | None, location: str | None, at: datetime) -> StatusEntry:
    return StatusEntry(
        status=status.value,
        description=description or status.history_note,
        location=location,
        recorded_at=at,
    )


@ordering.entity(part_of="Order")
class StatusTracker:
    current_status = String(
        max_length=50,
        choices=ShipmentStatus,
        default=ShipmentStatus.ORDER_PLACED.value,
    )
    history = List(content_type=ValueObject(StatusEntry), default=list)
    tracking_number = String(required=True, max_length=50)
    courier_partner = String(max_length=100)
    expected_delivery = DateTime()
    last_updated = DateTime()
    created_at = DateTime()

    @classmethod
    def open(cls, courier_partner: str | None = None):
        """Build a tracker whose history starts with ORDER_PLACED.

        Delivery is expected ``EXPECTED_DELIVERY_DAYS`` from now.
        """
        now = datetime.now(UTC)
        return cls(
            current_status=ShipmentStatus.ORDER_PLACED.value,
            history=[_entry(ShipmentStatus.ORDER_PLACED, None, None, now)],
            tracking_number=generate_tracking_number(),
            courier_partner=courier_partner,
            expected_delivery=now + timedelta(days=EXPECTED_DELIVERY_DAYS),
            last_updated=now,
            created_at=now,
        )

    def advance(
        self,
        new_status: ShipmentStatus,
        description: str | None = None,
        location: str | None = None,
    ) -> bool:
        """Append ``new_status`` to the history and make it current.

        Returns True when the new status is a milestone the customer should
        be notified about.
        """
        now = datetime.now(UTC)
        # Reassign so the change is tracked on the entity
        self.history = [*self.history, _entry(new_status, description, location, now)]
        self.current_status = new_status.value
        self.last_updated = now
        return is_milestone(new_status)

    @property
    def latest_entry(self) -> StatusEntry | None:
        return self.history[-1] if self.history else None
