"""Storefront API package."""

from storefront.api.routes import admin_router, cart_router, checkout_router, order_router, shipping_router

__all__ = ["cart_router", "shipping_router", "checkout_router", "order_router", "admin_router"]
