"""Order placement: the single atomic write of a checkout.

The order, its item snapshots and the stock decrement of every product
commit together in one unit of work. If any product cannot cover its
quantity the whole placement rolls back and ``StockConflict`` is raised;
no partial order and no partial decrement is ever persisted.

Concurrent checkouts of the same product race on its stored version. The
loser of a race re-reads every product and tries again, so only a real
shortfall ever becomes ``StockConflict``.
"""

import random
import time
from dataclasses import dataclass, field
from decimal import Decimal

import structlog
from protean import UnitOfWork
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.config import load_settings
from storefront.ordering.numbering import generate_order_number
from storefront.ordering.order import Address, Order, PaymentStatus
from storefront.shared.money import ZERO, to_cents

logger = structlog.get_logger(__name__)

MAX_PLACEMENT_ATTEMPTS = 10
RETRY_BASE_DELAY = 0.01  # seconds, doubled per attempt
RETRY_MAX_DELAY = 0.25


class StockConflict(Exception):
    """A product could not cover its quantity when the order was committed."""

    def __init__(self, product_id: str, message: str, available: int | None = None) -> None:
        self.product_id = product_id
        self.message = message
        self.available = available
        super().__init__(f"{product_id}: {message}")


@dataclass(frozen=True)
class OrderLine:
    product_id: str
    quantity: int
    unit_price_cents: int | None = None  # Price the customer was charged; live price when None


@dataclass(frozen=True)
class OrderDraft:
    email: str
    first_name: str
    last_name: str
    shipping_address: dict
    payment_method: str
    lines: list[OrderLine] = field(default_factory=list)
    payment_status: str = PaymentStatus.PENDING.value
    transaction_id: str | None = None
    shipping_method_id: str | None = None
    shipping_method_name: str | None = None
    shipping_cost: Decimal = ZERO
    billing_address: dict | None = None
    phone: str | None = None
    user_id: str | None = None
    notes: str | None = None
    wholesale: bool = False


def _take_stock(product_repo, line: OrderLine, order_number: str, wholesale: bool) -> dict:
    try:
        product = product_repo.get(line.product_id)
    except ObjectNotFoundError as exc:
        raise StockConflict(line.product_id, "Product no longer exists") from exc
    if not product.is_active:
        raise StockConflict(line.product_id, "Product is no longer available")

    try:
        product.reduce_stock(line.quantity, order_number=order_number)
    except ValidationError as exc:
        raise StockConflict(
            line.product_id,
            f"Only {product.stock_quantity} available",
            available=product.stock_quantity,
        ) from exc
    product_repo.add(product)

    price_cents = line.unit_price_cents
    if price_cents is None:
        price_cents = product.unit_price_cents(line.quantity, wholesale=wholesale)
    return {
        "product_id": str(product.id),
        "product_name": product.name,
        "product_sku": product.sku,
        "quantity": line.quantity,
        "price_cents": price_cents,
    }


def _commit(draft: OrderDraft, currency: str) -> Order:
    with UnitOfWork():
        product_repo = current_domain.repository_for(Product)
        order_number = generate_order_number()

        items = [_take_stock(product_repo, line, order_number, draft.wholesale) for line in draft.lines]

        order = Order.place(
            order_number=order_number,
            email=draft.email,
            first_name=draft.first_name,
            last_name=draft.last_name,
            phone=draft.phone,
            user_id=draft.user_id,
            shipping_address=Address(**draft.shipping_address),
            billing_address=Address(**draft.billing_address) if draft.billing_address else None,
            payment_method=draft.payment_method,
            payment_status=draft.payment_status,
            transaction_id=draft.transaction_id,
            shipping_method_id=draft.shipping_method_id,
            shipping_method_name=draft.shipping_method_name,
            shipping_cost_cents=to_cents(draft.shipping_cost),
            currency=currency,
            items=items,
            notes=draft.notes,
        )
        current_domain.repository_for(Order).add(order)
    return order


def place_order(draft: OrderDraft) -> Order:
    """Persist the order, its items and every stock decrement, or nothing at all.

    A version conflict on any product is retried with a fresh read, up to
    ``MAX_PLACEMENT_ATTEMPTS`` times with jittered exponential backoff. The
    conflict is re-raised if every attempt loses.
    """
    if not draft.lines:
        raise ValidationError({"items": ["Order must contain at least one item"]})

    currency = load_settings().store_currency
    for attempt in range(1, MAX_PLACEMENT_ATTEMPTS + 1):
        try:
            order = _commit(draft, currency)
            break
        except ExpectedVersionError as exc:
            if attempt == MAX_PLACEMENT_ATTEMPTS:
                logger.error("order_placement_conflict_exhausted", attempts=attempt, error=str(exc))
                raise
            delay = min(RETRY_MAX_DELAY, RETRY_BASE_DELAY * 2 ** (attempt - 1))
            logger.info("order_placement_conflict", attempt=attempt, retry_in=delay)
            time.sleep(random.uniform(0, delay))

    logger.info(
        "order_placed",
        order_number=order.order_number,
        payment_method=order.payment_method,
        payment_status=order.payment_status,
        total=str(order.total_amount),
        item_count=len(order.items),
        attempts=attempt,
    )
    return order
