"""Order lookups for customers and the back office."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.ordering.order import Order


def find_by_order_number(order_number: str) -> Order | None:
    if not order_number:
        return None
    orders = (
        current_domain.repository_for(Order)
        ._dao.query.filter(order_number=order_number.strip().upper())
        .all()
        .items
    )
    return orders[0] if orders else None


def get_order(order_id: str) -> Order | None:
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError:
        return None


def track_order(order_number: str, email: str) -> Order | None:
    """Guest order tracking: the order number and the email on the order must both match."""
    order = find_by_order_number(order_number)
    if order is None or not email:
        return None
    if order.email.strip().lower() != email.strip().lower():
        return None
    return order


def orders_for_user(user_id: str) -> list[Order]:
    """Orders of a signed-in customer, newest first."""
    orders = current_domain.repository_for(Order)._dao.query.filter(user_id=str(user_id)).all().items
    return sorted(orders, key=lambda order: order.created_at, reverse=True)
