import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture

from storefront.catalogue.product import Product, WholesalePriceTier
from storefront.identity.session import Session, reset_session_store
from storefront.notifications.channel import reset_channels, set_email_channel
from storefront.notifications.channel.fake_email import FakeEmailAdapter
from storefront.payments.gateway import reset_gateways, set_gateway
from storefront.payments.gateway.fake_adapter import FakeCardGateway, FakeWalletGateway
from storefront.payments.gateway.port import PaymentMethod
from storefront.shared.money import to_cents
from storefront.shipping.calculator import ShippingCalculator
from storefront.shipping.method import ShippingMethod
from storefront.shipping.zone import ShippingZone


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def _reset_adapters():
    yield
    reset_gateways()
    reset_channels()
    reset_session_store()


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------
@pytest.fixture()
def card_gateway():
    gateway = FakeCardGateway()
    set_gateway(PaymentMethod.CARD, gateway)
    return gateway


@pytest.fixture()
def wallet_gateway():
    gateway = FakeWalletGateway()
    set_gateway(PaymentMethod.WALLET, gateway)
    return gateway


@pytest.fixture()
def outbox():
    channel = FakeEmailAdapter()
    set_email_channel(channel)
    return channel


@pytest.fixture()
def session():
    return Session(session_id="sess-test")


# ---------------------------------------------------------------------------
# Catalogue and shipping factories
# ---------------------------------------------------------------------------
@pytest.fixture()
def make_product():
    def _make(
        name="Widget",
        price="10.00",
        stock=10,
        sale_price=None,
        weight=0.5,
        is_active=True,
        sku=None,
        tiers=(),
    ):
        product = Product.create(
            name=name,
            sku=sku or name.upper().replace(" ", "-"),
            price_cents=to_cents(price),
            sale_price_cents=to_cents(sale_price) if sale_price is not None else None,
            stock_quantity=stock,
            weight=weight,
            is_active=is_active,
        )
        for min_quantity, max_quantity, tier_price in tiers:
            product.add_wholesale_tiers(
                WholesalePriceTier(
                    min_quantity=min_quantity,
                    max_quantity=max_quantity,
                    price_cents=to_cents(tier_price),
                )
            )
        repo = current_domain.repository_for(Product)
        repo.add(product)
        return repo.get(product.id)

    return _make


@pytest.fixture()
def make_zone():
    def _make(name="Domestic", countries=("US",), sort_order=0, is_active=True):
        zone = ShippingZone.create(name=name, countries=countries, sort_order=sort_order, is_active=is_active)
        current_domain.repository_for(ShippingZone).add(zone)
        return zone

    return _make


@pytest.fixture()
def make_method():
    def _make(zone, name="Standard", base_cost="5.00", cost_per_kg="0", brackets=None, **options):
        method = ShippingMethod.create(
            zone_id=str(zone.id),
            name=name,
            base_cost=base_cost,
            cost_per_kg=cost_per_kg,
            brackets=brackets,
            **options,
        )
        current_domain.repository_for(ShippingMethod).add(method)
        return method

    return _make


@pytest.fixture()
def domestic_zone(make_zone):
    return make_zone("Domestic", ["US"])


@pytest.fixture()
def standard_shipping(domestic_zone, make_method):
    return make_method(domestic_zone, "Standard", base_cost="5.00", estimated_days_min=3, estimated_days_max=5)


@pytest.fixture()
def stock_of():
    def _stock(product) -> int:
        return current_domain.repository_for(Product).get(str(product.id)).stock_quantity

    return _stock


class RivalBuyerCalculator(ShippingCalculator):
    """Takes stock from under a checkout after its cart was validated.

    Shipping is validated between the cart stock check and order placement,
    so reducing stock here reproduces another shopper winning the race.
    """

    def __init__(self, product_id: str, quantity: int) -> None:
        self.product_id = product_id
        self.quantity = quantity

    def validate_shipping_method(self, *args, **kwargs):
        repo = current_domain.repository_for(Product)
        product = repo.get(self.product_id)
        product.reduce_stock(self.quantity)
        repo.add(product)
        return super().validate_shipping_method(*args, **kwargs)


@pytest.fixture()
def rival_buyer():
    def _rival(product, quantity):
        return RivalBuyerCalculator(str(product.id), quantity)

    return _rival
