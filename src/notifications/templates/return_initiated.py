"""Return initiated template — sent when a shipped order is returned."""

from notifications.notification import NotificationKind


class ReturnInitiatedTemplate:
    kind = NotificationKind.RETURN_INITIATED

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        reason = context.get("reason") or "as requested"
        return {
            "subject": f"Return Started for Order #{order_id}",
            "body": f"A return has been started for your order {order_id}. Reason: {reason}",
        }
