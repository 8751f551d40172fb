"""FastAPI routes for the storefront: cart, shipping, checkout and orders.

Visitors are identified by the ``X-Session-Id`` header. A request without
one (or with an unknown id) starts a new session, and every response
echoes the id the client should send next time.
"""

from fastapi import APIRouter, Depends, Header, HTTPException, Response
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from storefront.api.schemas import (
    AddOrderNoteRequest,
    AddToCartRequest,
    AvailableMethodsResponse,
    CancelOrderRequest,
    CartLineResponse,
    CartResponse,
    CheckoutRequest,
    CheckoutResponse,
    ConfirmationResponse,
    MarkShippedRequest,
    OrderChangeResponse,
    OrderItemResponse,
    OrderNoteResponse,
    OrderResponse,
    OutcomeResponse,
    PaymentMethodResponse,
    ShippingOptionResponse,
    ShippingQuoteResponse,
    StockIssueResponse,
    StockValidationResponse,
    TrackOrderRequest,
    UpdateCartQuantityRequest,
    UpdateOrderStatusRequest,
    UpdatePaymentStatusRequest,
    VerificationResponse,
    WalletIntentRequest,
    WalletIntentResponse,
)
from storefront.cart.cart import Cart
from storefront.checkout.form import CheckoutSubmission
from storefront.checkout.orchestrator import CheckoutOrchestrator, CheckoutOutcome, CheckoutResult
from storefront.identity.roles import Role
from storefront.identity.session import Session, SessionCorrupted, get_session_store
from storefront.ordering.administration import OrderAdministration
from storefront.ordering.order import Order
from storefront.ordering.tracking import get_order, orders_for_user, track_order
from storefront.payments.processor import PaymentProcessor
from storefront.shared.results import Outcome
from storefront.shipping.calculator import ShippingCalculator

SESSION_HEADER = "X-Session-Id"

_CHECKOUT_STATUS = {
    CheckoutOutcome.SUCCESS: 201,
    CheckoutOutcome.EMPTY_CART: 400,
    CheckoutOutcome.VALIDATION_ERROR: 400,
    CheckoutOutcome.SHIPPING_ERROR: 400,
    CheckoutOutcome.STOCK_ISSUE: 409,
    CheckoutOutcome.PAYMENT_FAILED: 402,
    CheckoutOutcome.RECONCILIATION_REQUIRED: 500,
    CheckoutOutcome.ORDER_FAILED: 500,
}


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------
def current_session(response: Response, x_session_id: str | None = Header(default=None)) -> Session:
    session = get_session_store().open(x_session_id)
    response.headers[SESSION_HEADER] = session.session_id
    return session


def admin_session(session: Session = Depends(current_session)) -> Session:
    if not session.has_role(Role.ADMIN):
        raise HTTPException(status_code=403, detail="Admin access required")
    return session


# ---------------------------------------------------------------------------
# Serializers
# ---------------------------------------------------------------------------
def _outcome(outcome: Outcome) -> OutcomeResponse:
    if not outcome:
        raise HTTPException(status_code=400, detail={"reason": outcome.reason, "message": outcome.message})
    return OutcomeResponse(message=outcome.message)


def _cart_response(session: Session) -> CartResponse:
    summary = Cart(session).get_summary()
    return CartResponse(
        session_id=session.session_id,
        lines=[
            CartLineResponse(
                product_id=line.product_id,
                name=line.name,
                sku=line.sku,
                quantity=line.quantity,
                unit_price=line.unit_price,
                original_price=line.original_price,
                subtotal=line.subtotal,
                on_sale=line.on_sale,
            )
            for line in summary.lines
        ],
        subtotal=summary.subtotal,
        total=summary.total,
        item_count=summary.item_count,
        total_quantity=summary.total_quantity,
        total_weight=summary.total_weight,
    )


def _order_response(order: Order) -> OrderResponse:
    address = order.shipping_address
    return OrderResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        email=order.email,
        customer_name=order.customer_name,
        order_status=order.order_status,
        payment_status=order.payment_status,
        payment_method=order.payment_method,
        subtotal=order.subtotal,
        shipping_cost=order.shipping_cost,
        tax_amount=order.tax_amount,
        total_amount=order.total_amount,
        shipping_address={
            "street": address.street,
            "city": address.city,
            "state": address.state,
            "postal_code": address.postal_code,
            "country": address.country,
        },
        shipping_method_name=order.shipping_method_name,
        tracking_number=order.tracking_number,
        carrier=order.carrier,
        tracking_url=order.tracking_url,
        items=[
            OrderItemResponse(
                product_id=str(item.product_id),
                product_name=item.product_name,
                product_sku=item.product_sku,
                quantity=item.quantity,
                price=item.price,
                total=item.total,
            )
            for item in order.items
        ],
    )


def _checkout_response(result: CheckoutResult) -> CheckoutResponse:
    return CheckoutResponse(
        success=result.success,
        outcome=result.outcome.value,
        message=result.message,
        order_number=result.order_number,
        email=result.email,
        total=result.total,
        payment_status=result.payment_status,
        transaction_id=result.transaction_id,
        error_code=result.error_code,
        recoverable=result.recoverable,
        stock_issues={
            product_id: StockIssueResponse(**issue.to_dict()) for product_id, issue in result.stock_issues.items()
        },
        bank_transfer=result.bank_transfer,
    )


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def view_cart(session: Session = Depends(current_session)) -> CartResponse:
    return _cart_response(session)


@cart_router.post("/items", response_model=OutcomeResponse)
async def add_cart_item(body: AddToCartRequest, session: Session = Depends(current_session)) -> OutcomeResponse:
    return _outcome(Cart(session).add(body.product_id, body.quantity))


@cart_router.put("/items/{product_id}", response_model=OutcomeResponse)
async def update_cart_item(
    product_id: str,
    body: UpdateCartQuantityRequest,
    session: Session = Depends(current_session),
) -> OutcomeResponse:
    return _outcome(Cart(session).update(product_id, body.quantity))


@cart_router.delete("/items/{product_id}", response_model=OutcomeResponse)
async def remove_cart_item(product_id: str, session: Session = Depends(current_session)) -> OutcomeResponse:
    return _outcome(Cart(session).remove(product_id))


@cart_router.delete("", response_model=OutcomeResponse)
async def clear_cart(session: Session = Depends(current_session)) -> OutcomeResponse:
    Cart(session).clear()
    return OutcomeResponse(message="Cart cleared.")


@cart_router.get("/validation", response_model=StockValidationResponse)
async def validate_cart(session: Session = Depends(current_session)) -> StockValidationResponse:
    issues = Cart(session).validate_stock()
    return StockValidationResponse(
        valid=not issues,
        issues={product_id: StockIssueResponse(**issue.to_dict()) for product_id, issue in issues.items()},
    )


# ---------------------------------------------------------------------------
# Shipping Router
# ---------------------------------------------------------------------------
shipping_router = APIRouter(prefix="/shipping", tags=["shipping"])


@shipping_router.get("/methods", response_model=AvailableMethodsResponse)
async def available_shipping_methods(
    country: str,
    session: Session = Depends(current_session),
) -> AvailableMethodsResponse:
    available = CheckoutOrchestrator().quote_shipping(session, country)
    return AvailableMethodsResponse(
        success=available.success,
        zone=available.zone,
        error=available.error,
        methods=[
            ShippingOptionResponse(
                method_id=option.method_id,
                name=option.name,
                description=option.description,
                cost=option.cost,
                cost_formatted=option.cost_formatted,
                free_shipping=option.free_shipping,
                delivery_text=option.delivery_text,
            )
            for option in available.methods
        ],
    )


@shipping_router.get("/methods/{method_id}/quote", response_model=ShippingQuoteResponse)
async def shipping_quote(method_id: str, session: Session = Depends(current_session)) -> ShippingQuoteResponse:
    quote = CheckoutOrchestrator().price_shipping(session, method_id)
    return ShippingQuoteResponse(
        success=quote.success,
        error=quote.error,
        cost=quote.cost,
        free_shipping=quote.free_shipping,
        method_id=quote.method_id,
        method_name=quote.method_name,
    )


@shipping_router.get("/rates/{country}")
async def shipping_rates(country: str):
    return ShippingCalculator().get_shipping_rates_display(country)


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("", response_model=CheckoutResponse)
async def checkout(body: CheckoutRequest, session: Session = Depends(current_session)):
    """Place an order from the session cart.

    The status code follows the outcome: 201 for a placed order, 400 for
    problems the customer can fix in the form, 409 for stock conflicts,
    402 for a declined payment and 500 when payment was captured but the
    order could not be saved.
    """
    try:
        result = CheckoutOrchestrator().checkout(session, CheckoutSubmission.from_mapping(body.model_dump()))
    except SessionCorrupted as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    payload = _checkout_response(result)
    return JSONResponse(
        status_code=_CHECKOUT_STATUS[result.outcome],
        content=payload.model_dump(mode="json"),
        headers={SESSION_HEADER: session.session_id},
    )


@checkout_router.post("/wallet-intent", response_model=WalletIntentResponse)
async def create_wallet_intent(
    body: WalletIntentRequest,
    session: Session = Depends(current_session),
) -> WalletIntentResponse:
    intent = CheckoutOrchestrator().create_wallet_intent(session, body.shipping_method_id)
    if not intent.success:
        raise HTTPException(
            status_code=400,
            detail={"error_code": intent.error_code, "message": intent.error_message},
        )
    return WalletIntentResponse(success=True, intent_id=intent.intent_id, status=intent.status)


@checkout_router.get("/payment-methods", response_model=list[PaymentMethodResponse])
async def payment_methods() -> list[PaymentMethodResponse]:
    return [
        PaymentMethodResponse(method=method.value, label=method.label)
        for method in PaymentProcessor().get_available_methods()
    ]


@checkout_router.get("/confirmation", response_model=ConfirmationResponse)
async def checkout_confirmation(session: Session = Depends(current_session)) -> ConfirmationResponse:
    if not session.last_order_number:
        raise HTTPException(status_code=404, detail="No recent order")
    return ConfirmationResponse(
        order_number=session.last_order_number,
        email=session.last_order_email,
        bank_transfer=session.bank_transfer_details,
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("/track", response_model=OrderResponse)
async def track(body: TrackOrderRequest) -> OrderResponse:
    order = track_order(body.order_number, body.email)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return _order_response(order)


@order_router.get("/mine", response_model=list[OrderResponse])
async def my_orders(session: Session = Depends(current_session)) -> list[OrderResponse]:
    if not session.is_authenticated:
        raise HTTPException(status_code=401, detail="Sign in to see your orders")
    return [_order_response(order) for order in orders_for_user(session.user_id)]


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(admin_session)])


def _administer(operation, *args, **kwargs) -> dict:
    try:
        return operation(*args, **kwargs)
    except ObjectNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Order not found") from exc
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.messages) from exc


@admin_router.get("/orders/{order_id}", response_model=OrderResponse)
async def admin_get_order(order_id: str) -> OrderResponse:
    order = get_order(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return _order_response(order)


@admin_router.post("/orders/{order_id}/cancel", response_model=OrderChangeResponse)
async def admin_cancel_order(order_id: str, body: CancelOrderRequest) -> OrderChangeResponse:
    result = _administer(OrderAdministration().cancel, order_id, reason=body.reason)
    return OrderChangeResponse(**result)


@admin_router.put("/orders/{order_id}/status", response_model=OrderChangeResponse)
async def admin_update_status(order_id: str, body: UpdateOrderStatusRequest) -> OrderChangeResponse:
    result = _administer(OrderAdministration().update_status, order_id, body.status)
    return OrderChangeResponse(**result)


@admin_router.post("/orders/{order_id}/shipment", response_model=OrderChangeResponse)
async def admin_mark_shipped(order_id: str, body: MarkShippedRequest) -> OrderChangeResponse:
    result = _administer(
        OrderAdministration().mark_shipped,
        order_id,
        tracking_number=body.tracking_number,
        carrier=body.carrier,
        tracking_url=body.tracking_url,
    )
    return OrderChangeResponse(**result)


@admin_router.put("/orders/{order_id}/payment-status", response_model=OrderChangeResponse)
async def admin_update_payment_status(order_id: str, body: UpdatePaymentStatusRequest) -> OrderChangeResponse:
    result = _administer(OrderAdministration().update_payment_status, order_id, body.payment_status)
    return OrderChangeResponse(**result)


@admin_router.post("/orders/{order_id}/notes", response_model=OrderNoteResponse)
async def admin_add_note(order_id: str, body: AddOrderNoteRequest) -> OrderNoteResponse:
    result = _administer(OrderAdministration().add_note, order_id, body.note)
    return OrderNoteResponse(**result)


@admin_router.get("/payments/{method}/{transaction_id}", response_model=VerificationResponse)
async def admin_verify_payment(method: str, transaction_id: str) -> VerificationResponse:
    verification = PaymentProcessor().verify_payment(method, transaction_id)
    return VerificationResponse(
        success=verification.success,
        status=verification.status,
        transaction_id=verification.transaction_id,
        error_message=verification.error_message,
    )
