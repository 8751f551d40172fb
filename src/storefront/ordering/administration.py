"""Back-office order operations.

Each operation processes its command synchronously and, once the change is
committed, tells the customer about it. Notification never affects the
outcome of the operation.
"""

import structlog
from protean.utils.globals import current_domain

from storefront.notifications.service import OrderNotificationService
from storefront.ordering.management import (
    AddOrderNote,
    CancelOrder,
    MarkOrderShipped,
    UpdateOrderStatus,
    UpdatePaymentStatus,
)

logger = structlog.get_logger(__name__)


class OrderAdministration:
    def __init__(self, notifier: OrderNotificationService | None = None) -> None:
        self.notifier = notifier or OrderNotificationService()

    def cancel(self, order_id: str, reason: str | None = None) -> dict:
        result = current_domain.process(CancelOrder(order_id=order_id, reason=reason), asynchronous=False)
        if result["changed"]:
            logger.info("order_cancelled", order_number=result["order_number"], reason=reason)
            self.notifier.notify_status_change(
                result["order_number"], result["previous_status"], result["new_status"], reason=reason
            )
        return result

    def update_status(self, order_id: str, status: str) -> dict:
        result = current_domain.process(UpdateOrderStatus(order_id=order_id, status=status), asynchronous=False)
        if result["changed"]:
            logger.info(
                "order_status_changed",
                order_number=result["order_number"],
                previous_status=result["previous_status"],
                new_status=result["new_status"],
            )
            self.notifier.notify_status_change(
                result["order_number"], result["previous_status"], result["new_status"]
            )
        return result

    def mark_shipped(
        self,
        order_id: str,
        tracking_number: str | None = None,
        carrier: str | None = None,
        tracking_url: str | None = None,
    ) -> dict:
        result = current_domain.process(
            MarkOrderShipped(
                order_id=order_id,
                tracking_number=tracking_number,
                carrier=carrier,
                tracking_url=tracking_url,
            ),
            asynchronous=False,
        )
        if result["changed"]:
            self.notifier.send_shipping_notification(
                result["order_number"],
                tracking_number=tracking_number,
                carrier=carrier,
                tracking_url=tracking_url,
            )
        return result

    def update_payment_status(self, order_id: str, payment_status: str) -> dict:
        result = current_domain.process(
            UpdatePaymentStatus(order_id=order_id, payment_status=payment_status),
            asynchronous=False,
        )
        if result["changed"]:
            logger.info(
                "payment_status_changed",
                order_number=result["order_number"],
                previous_status=result["previous_status"],
                new_status=result["new_status"],
            )
        return result

    def add_note(self, order_id: str, note: str) -> dict:
        return current_domain.process(AddOrderNote(order_id=order_id, note=note), asynchronous=False)
