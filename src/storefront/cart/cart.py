"""Session-backed shopping cart.

The cart lives in the visitor's ``Session`` as ``{product_id: quantity}``
lines. Every mutation checks the product against the catalogue and returns
an ``Outcome``; nothing here raises for a business failure. Prices and
totals are never stored; ``get_summary`` recomputes them from live
products each time.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal

import structlog

from storefront.catalogue.product import Product, ProductCatalog
from storefront.identity.session import CartLine, Session
from storefront.shared.money import ZERO, from_cents
from storefront.shared.results import Outcome

logger = structlog.get_logger(__name__)


class StockIssueReason:
    PRODUCT_NOT_FOUND = "product_not_found"
    PRODUCT_INACTIVE = "product_inactive"
    INSUFFICIENT_STOCK = "insufficient_stock"


@dataclass(frozen=True)
class StockIssue:
    product_id: str
    reason: str
    message: str
    requested: int
    available: int | None = None

    def to_dict(self) -> dict:
        data = {"reason": self.reason, "message": self.message, "requested": self.requested}
        if self.available is not None:
            data["available"] = self.available
        return data


@dataclass(frozen=True)
class CartSummaryLine:
    product_id: str
    name: str
    sku: str
    quantity: int
    unit_price: Decimal
    original_price: Decimal
    subtotal: Decimal
    weight: float
    stock_quantity: int

    @property
    def on_sale(self) -> bool:
        return self.unit_price < self.original_price


@dataclass(frozen=True)
class CartSummary:
    lines: list[CartSummaryLine] = field(default_factory=list)
    subtotal: Decimal = ZERO
    total: Decimal = ZERO
    item_count: int = 0
    total_quantity: int = 0
    total_weight: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.lines


class Cart:
    def __init__(self, session: Session, catalog: ProductCatalog | None = None) -> None:
        self.session = session
        self.catalog = catalog or ProductCatalog()

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def add(self, product_id, quantity: int = 1) -> Outcome:
        """Add ``quantity`` units, merging with any line already in the cart."""
        if quantity < 1:
            return Outcome.failure("invalid_quantity", "Quantity must be at least 1.")

        product = self.catalog.find(product_id)
        if product is None:
            return Outcome.failure(StockIssueReason.PRODUCT_NOT_FOUND, "Product not found.")
        if not product.is_active:
            return Outcome.failure(StockIssueReason.PRODUCT_INACTIVE, "Product is no longer available.")

        existing = self.session.cart_line(str(product.id))
        current = existing.quantity if existing else 0
        if not product.has_stock_for(current + quantity):
            return Outcome.failure(
                StockIssueReason.INSUFFICIENT_STOCK,
                f"Only {product.stock_quantity} available.",
            )

        self.session.put_cart_line(
            CartLine(
                product_id=str(product.id),
                quantity=current + quantity,
                added_at=existing.added_at if existing else datetime.now(UTC),
            )
        )
        logger.debug("cart_item_added", product_id=str(product.id), quantity=current + quantity)
        return Outcome.success("Product added to cart.")

    def update(self, product_id, quantity: int) -> Outcome:
        """Set the line quantity. Zero removes the line."""
        if quantity < 0:
            return Outcome.failure("invalid_quantity", "Quantity cannot be negative.")
        if quantity == 0:
            return self.remove(product_id)

        existing = self.session.cart_line(str(product_id))
        if existing is None:
            return Outcome.failure("not_in_cart", "Item is not in your cart.")

        product = self.catalog.find(product_id)
        if product is None:
            return Outcome.failure(StockIssueReason.PRODUCT_NOT_FOUND, "Product not found.")
        if not product.is_active:
            return Outcome.failure(StockIssueReason.PRODUCT_INACTIVE, "Product is no longer available.")
        if not product.has_stock_for(quantity):
            return Outcome.failure(
                StockIssueReason.INSUFFICIENT_STOCK,
                f"Only {product.stock_quantity} available.",
            )

        self.session.put_cart_line(
            CartLine(product_id=existing.product_id, quantity=quantity, added_at=existing.added_at)
        )
        return Outcome.success("Cart updated.")

    def remove(self, product_id) -> Outcome:
        if not self.session.drop_cart_line(str(product_id)):
            return Outcome.failure("not_in_cart", "Item is not in your cart.")
        return Outcome.success("Item removed from cart.")

    def clear(self) -> None:
        self.session.clear_cart()

    def remove_invalid_items(self) -> int:
        """Drop lines whose product vanished or was deactivated. Returns the count removed."""
        removed = 0
        for product_id in list(self.session.cart_lines()):
            product = self.catalog.find(product_id)
            if product is None or not product.is_active:
                self.session.drop_cart_line(product_id)
                removed += 1
        if removed:
            logger.info("cart_invalid_items_removed", count=removed)
        return removed

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def items(self) -> list[CartLine]:
        return list(self.session.cart_lines().values())

    def is_empty(self) -> bool:
        return not self.session.cart_lines()

    def has_product(self, product_id) -> bool:
        return str(product_id) in self.session.cart_lines()

    def quantity_of(self, product_id) -> int:
        line = self.session.cart_line(str(product_id))
        return line.quantity if line else 0

    def total_quantity(self) -> int:
        return sum(line.quantity for line in self.session.cart_lines().values())

    def validate_stock(self) -> dict[str, StockIssue]:
        """Check every line against live stock. Never mutates the cart."""
        issues = {}
        for product_id, line in self.session.cart_lines().items():
            product = self.catalog.find(product_id)
            if product is None:
                issues[product_id] = StockIssue(
                    product_id=product_id,
                    reason=StockIssueReason.PRODUCT_NOT_FOUND,
                    message="Product no longer exists",
                    requested=line.quantity,
                )
            elif not product.is_active:
                issues[product_id] = StockIssue(
                    product_id=product_id,
                    reason=StockIssueReason.PRODUCT_INACTIVE,
                    message="Product is no longer available",
                    requested=line.quantity,
                )
            elif not product.has_stock_for(line.quantity):
                issues[product_id] = StockIssue(
                    product_id=product_id,
                    reason=StockIssueReason.INSUFFICIENT_STOCK,
                    message=f"Only {product.stock_quantity} available",
                    requested=line.quantity,
                    available=product.stock_quantity,
                )
        return issues

    def get_summary(self, wholesale: bool | None = None) -> CartSummary:
        """Price the cart from live products. Vanished or inactive products are left out."""
        if wholesale is None:
            wholesale = self.session.is_wholesale

        lines = []
        for product_id, line in self.session.cart_lines().items():
            product = self.catalog.find(product_id)
            if product is None or not product.is_active:
                continue
            lines.append(self._summary_line(product, line.quantity, wholesale))

        subtotal = sum((line.subtotal for line in lines), ZERO)
        return CartSummary(
            lines=lines,
            subtotal=subtotal,
            total=subtotal,
            item_count=len(lines),
            total_quantity=sum(line.quantity for line in lines),
            total_weight=sum(line.weight * line.quantity for line in lines),
        )

    @staticmethod
    def _summary_line(product: Product, quantity: int, wholesale: bool) -> CartSummaryLine:
        unit_cents = product.unit_price_cents(quantity, wholesale=wholesale)
        return CartSummaryLine(
            product_id=str(product.id),
            name=product.name,
            sku=product.sku,
            quantity=quantity,
            unit_price=from_cents(unit_cents),
            original_price=from_cents(product.price_cents),
            subtotal=from_cents(unit_cents * quantity),
            weight=product.weight or 0.0,
            stock_quantity=product.stock_quantity,
        )
