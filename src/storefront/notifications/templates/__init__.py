"""Template registry: maps each order email kind to its template class."""

from enum import Enum

from storefront.notifications.templates.delivery_confirmation import DeliveryConfirmationTemplate
from storefront.notifications.templates.order_cancellation import OrderCancellationTemplate
from storefront.notifications.templates.order_confirmation import OrderConfirmationTemplate
from storefront.notifications.templates.shipping_notification import ShippingNotificationTemplate
from storefront.notifications.templates.status_update import StatusUpdateTemplate


class OrderEmail(Enum):
    CONFIRMATION = "order_confirmation"
    STATUS_UPDATE = "status_update"
    SHIPPED = "shipping_notification"
    DELIVERED = "delivery_confirmation"
    CANCELLED = "order_cancellation"


TEMPLATE_REGISTRY: dict[OrderEmail, type] = {
    OrderEmail.CONFIRMATION: OrderConfirmationTemplate,
    OrderEmail.STATUS_UPDATE: StatusUpdateTemplate,
    OrderEmail.SHIPPED: ShippingNotificationTemplate,
    OrderEmail.DELIVERED: DeliveryConfirmationTemplate,
    OrderEmail.CANCELLED: OrderCancellationTemplate,
}


def get_template(kind: OrderEmail):
    """Look up a template class by email kind."""
    template_cls = TEMPLATE_REGISTRY.get(kind)
    if template_cls is None:
        raise ValueError(f"No template registered for {kind}")
    return template_cls
