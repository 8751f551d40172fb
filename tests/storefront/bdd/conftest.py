"""Shared BDD fixtures and step definitions for checkout scenarios."""

from decimal import Decimal

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then

from storefront.cart.cart import Cart
from storefront.catalogue.product import Product
from storefront.ordering.order import Order


@pytest.fixture()
def shop():
    """Products by name and the optional rival shopper for the scenario."""
    return {"products": {}, "shipping": {}, "rival": None}


@pytest.fixture()
def result():
    return {"checkout": None}


def _orders():
    return current_domain.repository_for(Order)._dao.query.all().items


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name}" priced {price} with {stock:d} in stock'))
def _(shop, make_product, name, price, stock):
    shop["products"][name] = make_product(name, price=price, stock=stock, weight=0.5)


@given(parsers.cfparse('shipping "{name}" to "{country}" costing {cost}'))
def _(shop, make_zone, make_method, name, country, cost):
    zone = make_zone(f"{country} zone", [country])
    shop["shipping"][name] = make_method(zone, name, base_cost=cost)


@given(parsers.cfparse('the shopper has {quantity:d} "{name}" in the cart'))
def _(shop, session, name, quantity):
    assert Cart(session).add(shop["products"][name].id, quantity)


@given(parsers.cfparse('the card gateway declines with "{code}"'))
def _(card_gateway, code):
    card_gateway.configure(should_succeed=False, failure_code=code)


@given(parsers.cfparse('"{name}" stock drops to {stock:d}'))
def _(shop, name, stock):
    repo = current_domain.repository_for(Product)
    product = repo.get(shop["products"][name].id)
    product.stock_quantity = stock
    repo.add(product)


@given(parsers.cfparse('another shopper buys {quantity:d} "{name}" during checkout'))
def _(shop, rival_buyer, name, quantity):
    shop["rival"] = rival_buyer(shop["products"][name], quantity)


@given("the mail server is down")
def _(outbox):
    outbox.configure(raise_on_send=ConnectionError("SMTP unavailable"))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the checkout outcome is "{outcome}"'))
def _(result, outcome):
    assert result["checkout"].outcome.value == outcome


@then(parsers.cfparse('the shopper is told "{message}"'))
def _(result, message):
    assert result["checkout"].message.startswith(message)


@then(parsers.cfparse("the card is charged {amount} once"))
def _(card_gateway, amount):
    assert [call["amount"] for call in card_gateway.charge_calls] == [Decimal(amount)]


@then("the card is never charged")
def _(card_gateway):
    assert card_gateway.charge_calls == []


@then(parsers.cfparse('the order is "{payment_status}"'))
def _(result, payment_status):
    orders = _orders()
    assert len(orders) == 1
    assert orders[0].order_number == result["checkout"].order_number
    assert orders[0].payment_status == payment_status


@then("no order exists")
def _():
    assert _orders() == []


@then(parsers.cfparse('"{name}" has {stock:d} in stock'))
def _(shop, stock_of, name, stock):
    assert stock_of(shop["products"][name]) == stock


@then("the cart is empty")
def _(session):
    assert Cart(session).is_empty()


@then(parsers.cfparse('the cart holds {quantity:d} "{name}"'))
def _(shop, session, name, quantity):
    assert Cart(session).quantity_of(shop["products"][name].id) == quantity


@then(parsers.cfparse('a confirmation email is sent to "{email}"'))
def _(outbox, email):
    assert outbox.sent_to(email)[0]["subject"].endswith("Confirmed")


@then("the shopper receives a bank transfer reference")
def _(result, session):
    reference = result["checkout"].bank_transfer["reference"]
    assert reference.startswith("BT-")
    assert session.bank_transfer_details["reference"] == reference
