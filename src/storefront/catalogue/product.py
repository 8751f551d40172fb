"""Product aggregate: the catalogue facts checkout depends on.

Only the fields checkout reads are modelled here: price, sale price,
stock, weight and whether the product is active. Stock is changed through
``reduce_stock`` (the guarded decrement used by order placement) and
``restore_stock`` (used by cancellation).
"""

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Float, HasMany, Integer, String
from protean.utils.globals import current_domain

from storefront.catalogue.events import StockReduced, StockRestored
from storefront.domain import storefront


@storefront.entity(part_of="Product")
class WholesalePriceTier:
    """Quantity-based unit price offered to wholesale customers."""

    min_quantity = Integer(required=True, min_value=1)
    max_quantity = Integer(min_value=1)
    price_cents = Integer(required=True, min_value=0)
    is_active = Boolean(default=True)

    def covers(self, quantity: int) -> bool:
        if not self.is_active or quantity < self.min_quantity:
            return False
        return self.max_quantity is None or quantity <= self.max_quantity


@storefront.aggregate
class Product:
    name = String(required=True, max_length=255)
    sku = String(required=True, max_length=50)
    slug = String(max_length=255)
    price_cents = Integer(required=True, min_value=0)
    sale_price_cents = Integer(min_value=0)
    stock_quantity = Integer(default=0, min_value=0)
    weight = Float(min_value=0.0)
    is_active = Boolean(default=True)
    wholesale_tiers = HasMany(WholesalePriceTier)

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        name,
        sku,
        price_cents,
        stock_quantity=0,
        sale_price_cents=None,
        weight=None,
        is_active=True,
        slug=None,
    ):
        return cls(
            name=name,
            sku=sku,
            slug=slug or name.lower().replace(" ", "-"),
            price_cents=price_cents,
            sale_price_cents=sale_price_cents,
            stock_quantity=stock_quantity,
            weight=weight,
            is_active=is_active,
        )

    # -------------------------------------------------------------------
    # Pricing
    # -------------------------------------------------------------------
    @property
    def effective_price_cents(self) -> int:
        """Sale price wins over the list price when one is set."""
        if self.sale_price_cents is not None:
            return self.sale_price_cents
        return self.price_cents

    def wholesale_price_cents(self, quantity: int) -> int | None:
        """Best active tier price for ``quantity``, or None when no tier applies."""
        tiers = sorted(
            (tier for tier in self.wholesale_tiers if tier.covers(quantity)),
            key=lambda tier: tier.min_quantity,
            reverse=True,
        )
        if not tiers:
            return None
        return tiers[0].price_cents

    def unit_price_cents(self, quantity: int, wholesale: bool = False) -> int:
        retail = self.effective_price_cents
        if wholesale:
            tier_price = self.wholesale_price_cents(quantity)
            if tier_price is not None and tier_price < retail:
                return tier_price
        return retail

    # -------------------------------------------------------------------
    # Stock
    # -------------------------------------------------------------------
    def has_stock_for(self, quantity: int) -> bool:
        return self.stock_quantity >= quantity

    def reduce_stock(self, quantity, order_number=None):
        """Take ``quantity`` units. Refuses rather than letting stock go negative."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        if self.stock_quantity < quantity:
            raise ValidationError(
                {
                    "stock_quantity": [
                        f"Insufficient stock for {self.name}: {self.stock_quantity} available, {quantity} requested"
                    ]
                }
            )

        self.stock_quantity -= quantity

        self.raise_(
            StockReduced(
                product_id=str(self.id),
                quantity=quantity,
                remaining=self.stock_quantity,
                order_number=order_number,
            )
        )

    def restore_stock(self, quantity, order_number=None):
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        self.stock_quantity += quantity

        self.raise_(
            StockRestored(
                product_id=str(self.id),
                quantity=quantity,
                remaining=self.stock_quantity,
                order_number=order_number,
            )
        )


class ProductCatalog:
    """Read access to products for the cart and checkout."""

    def find(self, product_id) -> Product | None:
        if not product_id:
            return None
        try:
            return current_domain.repository_for(Product).get(str(product_id))
        except ObjectNotFoundError:
            return None
