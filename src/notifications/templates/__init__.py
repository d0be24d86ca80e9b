"""Template registry — maps notification kinds to message templates.

Each template renders ``{"subject": ..., "body": ...}`` from a context dict.
Bodies stay within a single SMS so every template works on both channels.
"""

from notifications.templates.order_confirmation import OrderConfirmationTemplate
from notifications.templates.return_initiated import ReturnInitiatedTemplate
from notifications.templates.shipment_update import ShipmentUpdateTemplate
from notifications.notification import NotificationKind

TEMPLATE_REGISTRY: dict[NotificationKind, type] = {
    NotificationKind.ORDER_PLACED: OrderConfirmationTemplate,
    NotificationKind.SHIPMENT_UPDATE: ShipmentUpdateTemplate,
    NotificationKind.DELIVERY: ShipmentUpdateTemplate,
    NotificationKind.RETURN_INITIATED: ReturnInitiatedTemplate,
}


def get_template(kind: NotificationKind):
    """Look up a template class by notification kind."""
    template_cls = TEMPLATE_REGISTRY.get(kind)
    if template_cls is None:
        raise ValueError(f"No template registered for notification kind: {kind.value}")
    return template_cls


def render(kind: NotificationKind, context: dict) -> dict:
    return get_template(kind).render(context)
