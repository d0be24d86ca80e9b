"""Shipment update template — sent on shipment milestones."""

from notifications.notification import NotificationKind


class ShipmentUpdateTemplate:
    kind = NotificationKind.SHIPMENT_UPDATE

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        status_description = context.get("status_description", "on its way")
        return {
            "subject": "Order Status Update",
            "body": f"Your order {order_id} is {status_description}",
        }
