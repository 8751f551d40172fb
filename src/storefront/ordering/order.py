"""Order aggregate: the committed result of a checkout.

An order is created once, by order placement, with an immutable snapshot
of every line item (name, SKU and unit price at the time of purchase).
Afterwards only its fulfilment status, payment status, tracking details
and notes change. Orders are never deleted.

Fulfilment state machine:
    pending → processing → shipped → delivered
    pending → shipped (skip processing)
    pending/processing → cancelled
    shipped/delivered → returned
    cancelled and returned are terminal.
"""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text, ValueObject

from storefront.domain import storefront
from storefront.ordering.events import (
    OrderCancelled,
    OrderPlaced,
    OrderShipped,
    OrderStatusChanged,
    PaymentStatusChanged,
)
from storefront.shared.money import from_cents


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.RETURNED},
    OrderStatus.DELIVERED: {OrderStatus.RETURNED},
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.RETURNED: set(),  # Terminal
}

_UNCANCELLABLE_STATES = {OrderStatus.SHIPPED, OrderStatus.DELIVERED}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class Address:
    """A delivery or billing address captured at checkout time."""

    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=2)

    @property
    def formatted(self) -> str:
        parts = [self.street, self.city, self.state, self.postal_code, self.country]
        return ", ".join(part for part in parts if part)


@storefront.value_object(part_of="Order")
class OrderPricing:
    """Amounts in cents, locked when the order is placed."""

    subtotal_cents = Integer(default=0, min_value=0)
    shipping_cost_cents = Integer(default=0, min_value=0)
    tax_amount_cents = Integer(default=0, min_value=0)
    total_amount_cents = Integer(default=0, min_value=0)
    currency = String(max_length=3, default="USD")


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    product_sku = String(required=True, max_length=50)
    quantity = Integer(required=True, min_value=1)
    price_cents = Integer(required=True, min_value=0)
    total_cents = Integer(required=True, min_value=0)

    @property
    def price(self) -> Decimal:
        return from_cents(self.price_cents)

    @property
    def total(self) -> Decimal:
        return from_cents(self.total_cents)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    order_number = String(required=True, max_length=20, unique=True)
    user_id = Identifier()  # Nullable for guest checkout
    email = String(required=True, max_length=255)
    first_name = String(required=True, max_length=100)
    last_name = String(required=True, max_length=100)
    phone = String(max_length=50)
    shipping_address = ValueObject(Address, required=True)
    billing_address = ValueObject(Address)
    pricing = ValueObject(OrderPricing)
    payment_method = String(required=True, max_length=30)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    order_status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    transaction_id = String(max_length=255)
    shipping_method_id = Identifier()
    shipping_method_name = String(max_length=100)
    tracking_number = String(max_length=100)
    carrier = String(max_length=100)
    tracking_url = String(max_length=500)
    notes = Text()
    items = HasMany(OrderItem)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_equal_its_components(self):
        pricing = self.pricing
        if pricing is None:
            return
        expected = pricing.subtotal_cents + pricing.shipping_cost_cents + pricing.tax_amount_cents
        if pricing.total_amount_cents != expected:
            raise ValidationError({"pricing": ["Order total must equal subtotal + shipping + tax"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number,
        email,
        first_name,
        last_name,
        shipping_address,
        payment_method,
        items,
        shipping_cost_cents=0,
        tax_amount_cents=0,
        currency="USD",
        payment_status=PaymentStatus.PENDING.value,
        transaction_id=None,
        user_id=None,
        phone=None,
        billing_address=None,
        shipping_method_id=None,
        shipping_method_name=None,
        notes=None,
    ):
        """Create an order from item snapshots.

        ``items`` are dicts with ``product_id``, ``product_name``,
        ``product_sku``, ``quantity`` and ``price_cents``. The subtotal is
        always recomputed from them.
        """
        if not items:
            raise ValidationError({"items": ["Order must contain at least one item"]})

        subtotal_cents = sum(item["price_cents"] * item["quantity"] for item in items)
        now = datetime.now(UTC)
        order = cls(
            order_number=order_number,
            user_id=user_id,
            email=email,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            shipping_address=shipping_address,
            billing_address=billing_address,
            pricing=OrderPricing(
                subtotal_cents=subtotal_cents,
                shipping_cost_cents=shipping_cost_cents,
                tax_amount_cents=tax_amount_cents,
                total_amount_cents=subtotal_cents + shipping_cost_cents + tax_amount_cents,
                currency=currency,
            ),
            payment_method=payment_method,
            payment_status=payment_status,
            order_status=OrderStatus.PENDING.value,
            transaction_id=transaction_id,
            shipping_method_id=shipping_method_id,
            shipping_method_name=shipping_method_name,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        for item in items:
            order.add_items(
                OrderItem(
                    product_id=item["product_id"],
                    product_name=item["product_name"],
                    product_sku=item["product_sku"],
                    quantity=item["quantity"],
                    price_cents=item["price_cents"],
                    total_cents=item["price_cents"] * item["quantity"],
                )
            )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                email=email,
                payment_method=payment_method,
                payment_status=payment_status,
                total_amount_cents=order.pricing.total_amount_cents,
                item_count=len(items),
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Amounts
    # -------------------------------------------------------------------
    @property
    def subtotal(self) -> Decimal:
        return from_cents(self.pricing.subtotal_cents)

    @property
    def shipping_cost(self) -> Decimal:
        return from_cents(self.pricing.shipping_cost_cents)

    @property
    def tax_amount(self) -> Decimal:
        return from_cents(self.pricing.tax_amount_cents)

    @property
    def total_amount(self) -> Decimal:
        return from_cents(self.pricing.total_amount_cents)

    @property
    def customer_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    # -------------------------------------------------------------------
    # Fulfilment status
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target: OrderStatus) -> None:
        current = OrderStatus(self.order_status)
        if target not in _VALID_TRANSITIONS[current]:
            raise ValidationError(
                {"order_status": [f"Cannot transition from {current.value} to {target.value}"]}
            )

    def change_status(self, new_status) -> bool:
        """Move to ``new_status``. Returns False when the order is already there."""
        target = OrderStatus(new_status)
        previous = OrderStatus(self.order_status)
        if target == previous:
            return False
        if target == OrderStatus.CANCELLED:
            return self.cancel()

        self._assert_can_transition(target)
        now = datetime.now(UTC)
        self.order_status = target.value
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=previous.value,
                new_status=target.value,
                changed_at=now,
            )
        )
        return True

    def mark_shipped(self, tracking_number=None, carrier=None, tracking_url=None) -> bool:
        changed = self.change_status(OrderStatus.SHIPPED.value)
        self.tracking_number = tracking_number or self.tracking_number
        self.carrier = carrier or self.carrier
        self.tracking_url = tracking_url or self.tracking_url

        self.raise_(
            OrderShipped(
                order_id=str(self.id),
                order_number=self.order_number,
                tracking_number=self.tracking_number,
                carrier=self.carrier,
                tracking_url=self.tracking_url,
                shipped_at=self.updated_at,
            )
        )
        return changed

    @property
    def is_cancellable(self) -> bool:
        return OrderStatus(self.order_status) not in _UNCANCELLABLE_STATES | {OrderStatus.RETURNED}

    def cancel(self, reason=None) -> bool:
        """Cancel the order. Returns False when it was already cancelled.

        Stock is not touched here; the cancellation handler restores it in
        the same unit of work.
        """
        previous = OrderStatus(self.order_status)
        if previous == OrderStatus.CANCELLED:
            return False
        if previous in _UNCANCELLABLE_STATES:
            raise ValidationError({"order_status": ["Cannot cancel an order that has been shipped or delivered"]})
        self._assert_can_transition(OrderStatus.CANCELLED)

        now = datetime.now(UTC)
        self.order_status = OrderStatus.CANCELLED.value
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=previous.value,
                reason=reason,
                cancelled_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Payment status
    # -------------------------------------------------------------------
    def update_payment_status(self, new_status) -> bool:
        target = PaymentStatus(new_status)
        previous = PaymentStatus(self.payment_status)
        if target == previous:
            return False

        now = datetime.now(UTC)
        self.payment_status = target.value
        self.updated_at = now

        self.raise_(
            PaymentStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=previous.value,
                new_status=target.value,
                changed_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Notes
    # -------------------------------------------------------------------
    def add_note(self, note: str) -> None:
        if not note or not note.strip():
            raise ValidationError({"note": ["Note cannot be empty"]})
        now = datetime.now(UTC)
        entry = f"[{now:%Y-%m-%d %H:%M:%S}] {note.strip()}"
        self.notes = f"{self.notes}\n{entry}" if self.notes else entry
        self.updated_at = now
