"""Customer emails about orders.

Every public method returns True when the email was handed to the channel
and False otherwise. Failures are logged, never raised: an email problem
must not undo or block a committed order.
"""

import structlog

from storefront.notifications.channel import get_email_channel
from storefront.notifications.channel.email_port import DeliveryStatus
from storefront.notifications.templates import OrderEmail, get_template
from storefront.ordering.order import Order, OrderStatus, PaymentStatus
from storefront.ordering.tracking import find_by_order_number
from storefront.shared.money import format_money

logger = structlog.get_logger(__name__)


def order_context(order: Order) -> dict:
    return {
        "order_number": order.order_number,
        "customer_name": order.customer_name,
        "items": [
            {
                "name": item.product_name,
                "sku": item.product_sku,
                "quantity": item.quantity,
                "price": format_money(item.price),
                "total": format_money(item.total),
            }
            for item in order.items
        ],
        "subtotal": format_money(order.subtotal),
        "shipping_cost": format_money(order.shipping_cost),
        "shipping_method": order.shipping_method_name or "Standard",
        "total": format_money(order.total_amount),
        "shipping_address": order.shipping_address.formatted if order.shipping_address else "",
        "payment_method": order.payment_method,
        "payment_status": order.payment_status,
        "payment_pending": order.payment_status == PaymentStatus.PENDING.value,
        "transaction_id": order.transaction_id,
        "order_status": order.order_status,
        "tracking_number": order.tracking_number,
        "carrier": order.carrier,
        "tracking_url": order.tracking_url,
    }


class OrderNotificationService:
    def _send(self, kind: OrderEmail, order_number: str, **extra) -> bool:
        try:
            order = find_by_order_number(order_number)
            if order is None:
                logger.error("order_notification_order_missing", kind=kind.value, order_number=order_number)
                return False

            context = order_context(order)
            context.update(extra)
            content = get_template(kind).render(context)
            result = get_email_channel().send(order.email, content["subject"], content["body"])
        except Exception as exc:
            logger.error(
                "order_notification_failed",
                kind=kind.value,
                order_number=order_number,
                error=str(exc),
                exc_info=True,
            )
            return False

        if result.get("status") != DeliveryStatus.SENT.value:
            logger.error(
                "order_notification_not_sent",
                kind=kind.value,
                order_number=order_number,
                error=result.get("error"),
            )
            return False

        logger.info("order_notification_sent", kind=kind.value, order_number=order_number)
        return True

    def send_order_confirmation(self, order_number: str) -> bool:
        return self._send(OrderEmail.CONFIRMATION, order_number)

    def send_status_update(self, order_number: str, new_status: str) -> bool:
        return self._send(OrderEmail.STATUS_UPDATE, order_number, new_status=new_status)

    def send_shipping_notification(
        self,
        order_number: str,
        tracking_number: str | None = None,
        carrier: str | None = None,
        tracking_url: str | None = None,
    ) -> bool:
        extra = {
            key: value
            for key, value in {
                "tracking_number": tracking_number,
                "carrier": carrier,
                "tracking_url": tracking_url,
            }.items()
            if value
        }
        return self._send(OrderEmail.SHIPPED, order_number, **extra)

    def send_delivery_confirmation(self, order_number: str) -> bool:
        return self._send(OrderEmail.DELIVERED, order_number)

    def send_cancellation_notification(self, order_number: str, reason: str | None = None) -> bool:
        return self._send(OrderEmail.CANCELLED, order_number, reason=reason)

    def notify_status_change(self, order_number: str, old_status: str, new_status: str, **extra) -> bool:
        """Pick the email that fits the new status. Unchanged status sends nothing."""
        if old_status == new_status:
            return False
        if new_status == OrderStatus.SHIPPED.value:
            return self.send_shipping_notification(order_number, **extra)
        if new_status == OrderStatus.DELIVERED.value:
            return self.send_delivery_confirmation(order_number)
        if new_status == OrderStatus.CANCELLED.value:
            return self.send_cancellation_notification(order_number, reason=extra.get("reason"))
        return self.send_status_update(order_number, new_status)
