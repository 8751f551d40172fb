"""Pydantic request/response schemas for the Storefront API.

These are external contracts, kept separate from the domain objects and
from the checkout result types.
"""

from decimal import Decimal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    street: str
    city: str
    state: str | None = None
    postal_code: str
    country: str


class OutcomeResponse(BaseModel):
    success: bool = True
    reason: str | None = None
    message: str | None = None


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = Field(default=1)


class UpdateCartQuantityRequest(BaseModel):
    quantity: int


class CartLineResponse(BaseModel):
    product_id: str
    name: str
    sku: str
    quantity: int
    unit_price: Decimal
    original_price: Decimal
    subtotal: Decimal
    on_sale: bool


class CartResponse(BaseModel):
    session_id: str
    lines: list[CartLineResponse] = Field(default_factory=list)
    subtotal: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")
    item_count: int = 0
    total_quantity: int = 0
    total_weight: float = 0.0


class StockIssueResponse(BaseModel):
    reason: str
    message: str
    requested: int
    available: int | None = None


class StockValidationResponse(BaseModel):
    valid: bool
    issues: dict[str, StockIssueResponse] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Shipping
# ---------------------------------------------------------------------------
class ShippingOptionResponse(BaseModel):
    method_id: str
    name: str
    description: str | None = None
    cost: Decimal
    cost_formatted: str
    free_shipping: bool
    delivery_text: str


class AvailableMethodsResponse(BaseModel):
    success: bool
    zone: str | None = None
    methods: list[ShippingOptionResponse] = Field(default_factory=list)
    error: str | None = None


class ShippingQuoteResponse(BaseModel):
    success: bool
    error: str | None = None
    cost: Decimal = Decimal("0.00")
    free_shipping: bool = False
    method_id: str | None = None
    method_name: str | None = None


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class CheckoutRequest(BaseModel):
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""
    phone: str = ""
    notes: str = ""
    payment_method: str = ""
    shipping_method: str = ""
    billing_same: bool = True
    billing_address: str = ""
    billing_city: str = ""
    billing_state: str = ""
    billing_postal_code: str = ""
    billing_country: str = ""
    payment_data: dict = Field(default_factory=dict)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "email": "ada@example.com",
                    "first_name": "Ada",
                    "last_name": "Lovelace",
                    "address": "12 Analytical Row",
                    "city": "London",
                    "postal_code": "N1 9GU",
                    "country": "GB",
                    "payment_method": "card",
                    "shipping_method": "<shipping-method-id>",
                    "payment_data": {"token": "tok_visa"},
                }
            ]
        }
    }


class CheckoutResponse(BaseModel):
    success: bool
    outcome: str
    message: str
    order_number: str | None = None
    email: str | None = None
    total: Decimal | None = None
    payment_status: str | None = None
    transaction_id: str | None = None
    error_code: str | None = None
    recoverable: bool | None = None
    stock_issues: dict[str, StockIssueResponse] = Field(default_factory=dict)
    bank_transfer: dict | None = None


class WalletIntentRequest(BaseModel):
    shipping_method_id: str | None = None


class WalletIntentResponse(BaseModel):
    success: bool
    intent_id: str | None = None
    status: str | None = None
    error_code: str | None = None
    error_message: str | None = None


class PaymentMethodResponse(BaseModel):
    method: str
    label: str


class ConfirmationResponse(BaseModel):
    order_number: str
    email: str | None = None
    bank_transfer: dict | None = None


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class TrackOrderRequest(BaseModel):
    order_number: str
    email: str


class OrderItemResponse(BaseModel):
    product_id: str
    product_name: str
    product_sku: str
    quantity: int
    price: Decimal
    total: Decimal


class OrderResponse(BaseModel):
    order_id: str
    order_number: str
    email: str
    customer_name: str
    order_status: str
    payment_status: str
    payment_method: str
    subtotal: Decimal
    shipping_cost: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    shipping_address: AddressSchema
    shipping_method_name: str | None = None
    tracking_number: str | None = None
    carrier: str | None = None
    tracking_url: str | None = None
    items: list[OrderItemResponse] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Back office
# ---------------------------------------------------------------------------
class CancelOrderRequest(BaseModel):
    reason: str | None = None


class UpdateOrderStatusRequest(BaseModel):
    status: str


class MarkShippedRequest(BaseModel):
    tracking_number: str | None = None
    carrier: str | None = None
    tracking_url: str | None = None


class UpdatePaymentStatusRequest(BaseModel):
    payment_status: str


class AddOrderNoteRequest(BaseModel):
    note: str = Field(min_length=1)


class OrderChangeResponse(BaseModel):
    order_id: str
    order_number: str
    changed: bool
    previous_status: str | None = None
    new_status: str | None = None


class VerificationResponse(BaseModel):
    success: bool
    status: str
    transaction_id: str | None = None
    error_message: str | None = None


class OrderNoteResponse(BaseModel):
    order_id: str
    order_number: str
    notes: str
