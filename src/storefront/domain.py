"""Storefront bounded context: cart, shipping, payments and checkout.

Owns the product stock, shipping zones and methods, and orders. Keeping
them in one domain means order placement (order row, line items and the
stock decrement) commits through a single unit of work.
"""

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)
