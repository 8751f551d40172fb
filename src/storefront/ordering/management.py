"""Back-office order management: commands and handler.

Each command runs in its own unit of work. Cancellation returns every
item's quantity to stock in that same unit of work, so a cancelled order
and its restored stock are committed together.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.ordering.order import Order, OrderStatus, PaymentStatus

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = Text()


@storefront.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, choices=OrderStatus)


@storefront.command(part_of="Order")
class MarkOrderShipped:
    order_id = Identifier(required=True)
    tracking_number = String(max_length=100)
    carrier = String(max_length=100)
    tracking_url = String(max_length=500)


@storefront.command(part_of="Order")
class UpdatePaymentStatus:
    order_id = Identifier(required=True)
    payment_status = String(required=True, choices=PaymentStatus)


@storefront.command(part_of="Order")
class AddOrderNote:
    order_id = Identifier(required=True)
    note = Text(required=True)


def _change(order, previous_status, changed):
    return {
        "order_id": str(order.id),
        "order_number": order.order_number,
        "changed": changed,
        "previous_status": previous_status,
        "new_status": order.order_status,
    }


@storefront.command_handler(part_of=Order)
class OrderManagementHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.order_status

        changed = order.cancel(reason=command.reason)
        if changed:
            self._restore_stock(order)
            if command.reason:
                order.add_note(f"Cancelled: {command.reason}")
        repo.add(order)
        return _change(order, previous, changed)

    @staticmethod
    def _restore_stock(order):
        product_repo = current_domain.repository_for(Product)
        for item in order.items:
            try:
                product = product_repo.get(item.product_id)
            except ObjectNotFoundError:
                logger.warning(
                    "stock_restore_skipped",
                    order_number=order.order_number,
                    product_id=str(item.product_id),
                )
                continue
            product.restore_stock(item.quantity, order_number=order.order_number)
            product_repo.add(product)

    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        if command.status == OrderStatus.CANCELLED.value:
            return self.cancel_order(CancelOrder(order_id=command.order_id))

        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.order_status
        changed = order.change_status(command.status)
        repo.add(order)
        return _change(order, previous, changed)

    @handle(MarkOrderShipped)
    def mark_order_shipped(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.order_status
        changed = order.mark_shipped(
            tracking_number=command.tracking_number,
            carrier=command.carrier,
            tracking_url=command.tracking_url,
        )
        repo.add(order)
        return _change(order, previous, changed)

    @handle(UpdatePaymentStatus)
    def update_payment_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.payment_status
        changed = order.update_payment_status(command.payment_status)
        repo.add(order)
        return {
            "order_id": str(order.id),
            "order_number": order.order_number,
            "changed": changed,
            "previous_status": previous,
            "new_status": order.payment_status,
        }

    @handle(AddOrderNote)
    def add_order_note(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.add_note(command.note)
        repo.add(order)
        return {"order_id": str(order.id), "order_number": order.order_number, "notes": order.notes}
