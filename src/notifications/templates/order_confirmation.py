"""Order confirmation template — sent once an order has been paid."""

from notifications.notification import NotificationKind


class OrderConfirmationTemplate:
    kind = NotificationKind.ORDER_PLACED

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        final_amount = context.get("final_amount", 0.0)
        return {
            "subject": f"Order #{order_id} Confirmed",
            "body": f"Your order {order_id} has been placed. Amount payable: {final_amount:.2f}.",
        }
