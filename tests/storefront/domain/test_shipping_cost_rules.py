"""Tests for ShippingMethod cost resolution and constraints."""

from decimal import Decimal

import pytest
from protean.exceptions import ValidationError

from storefront.shipping.method import ShippingMethod, format_weight_range
from storefront.shipping.zone import ShippingZone


def _method(**kwargs):
    defaults = {"zone_id": "zone-1", "name": "Standard", "base_cost": "5.00"}
    defaults.update(kwargs)
    return ShippingMethod.create(**defaults)


def _bracketed(**kwargs):
    return _method(brackets=[(0, 1, "4.00"), (1, 5, "8.00"), (5, 10, "15.00")], **kwargs)


class TestFormulaCost:
    def test_base_plus_per_kg(self):
        method = _method(base_cost="5.00", cost_per_kg="2.00")
        quote = method.quote(3.0, Decimal("20.00"))
        assert quote.success
        assert quote.cost == Decimal("11.00")

    def test_rounds_half_up(self):
        method = _method(base_cost="0", cost_per_kg="1.25")
        assert method.quote(0.5, Decimal("10")).cost == Decimal("0.63")


class TestWeightBrackets:
    def test_lower_bound_is_inclusive(self):
        assert _bracketed().quote(1.0, Decimal("10")).cost == Decimal("8.00")

    def test_upper_bound_is_exclusive(self):
        assert _bracketed().quote(0.99, Decimal("10")).cost == Decimal("4.00")

    def test_last_bracket_includes_its_max(self):
        assert _bracketed().quote(10.0, Decimal("10")).cost == Decimal("15.00")

    def test_heavier_than_every_bracket_pays_last_bracket(self):
        assert _bracketed().quote(42.0, Decimal("10")).cost == Decimal("15.00")

    def test_below_first_bracket_uses_formula(self):
        method = _method(base_cost="3.00", brackets=[(2, 5, "9.00")])
        assert method.quote(1.0, Decimal("10")).cost == Decimal("3.00")

    def test_open_ended_bracket(self):
        method = _method(brackets=[(0, 2, "4.00"), (2, None, "12.00")])
        assert method.quote(50.0, Decimal("10")).cost == Decimal("12.00")

    def test_bracket_needs_max_above_min(self):
        with pytest.raises(ValidationError):
            _method(brackets=[(5, 5, "1.00")])

    def test_range_text(self):
        assert format_weight_range(0, 1) == "Up to 1kg"
        assert format_weight_range(1, 5.5) == "1kg - 5.5kg"
        assert format_weight_range(10, None) == "Over 10kg"


class TestFreeShipping:
    def test_threshold_reached_is_free(self):
        method = _bracketed(free_shipping_threshold="50.00")
        quote = method.quote(3.0, Decimal("50.00"))
        assert quote.cost == Decimal("0.00")
        assert quote.free_shipping is True

    def test_free_shipping_beats_brackets(self):
        method = _bracketed(free_shipping_threshold="50.00")
        assert method.quote(42.0, Decimal("75.00")).cost == Decimal("0.00")

    def test_below_threshold_is_charged(self):
        method = _bracketed(free_shipping_threshold="50.00")
        quote = method.quote(3.0, Decimal("49.99"))
        assert quote.cost == Decimal("8.00")
        assert quote.free_shipping is False

    def test_free_shipping_text(self):
        method = _method(free_shipping_threshold="50")
        assert method.free_shipping_text == "Free shipping on orders over $50.00"
        assert _method().free_shipping_text is None


class TestConstraints:
    def test_inactive_method(self):
        quote = _method(is_active=False).quote(1.0, Decimal("10"))
        assert not quote.success
        assert quote.error == "Shipping method is not available"

    def test_minimum_order_amount(self):
        quote = _method(min_order_amount="30.00").quote(1.0, Decimal("29.99"))
        assert not quote.success
        assert "Minimum order amount" in quote.error

    def test_minimum_weight(self):
        quote = _method(min_weight=2.0).quote(1.0, Decimal("10"))
        assert quote.error == "Minimum weight of 2kg required"

    def test_maximum_weight(self):
        quote = _method(max_weight=20.0).quote(20.5, Decimal("10"))
        assert quote.error == "Maximum weight of 20kg exceeded"

    def test_max_weight_is_inclusive(self):
        assert _method(max_weight=20.0).quote(20.0, Decimal("10")).success

    def test_constraints_checked_before_free_shipping(self):
        method = _method(max_weight=5.0, free_shipping_threshold="10")
        assert not method.quote(6.0, Decimal("100")).success


class TestDeliveryText:
    def test_range(self):
        assert _method(estimated_days_min=3, estimated_days_max=5).delivery_text == "3-5 business days"

    def test_single_value(self):
        assert _method(estimated_days_min=2, estimated_days_max=2).delivery_text == "2 business days"

    def test_unknown(self):
        assert _method().delivery_text == "Delivery time varies"


class TestShippingZone:
    def test_countries_are_normalized(self):
        zone = ShippingZone.create("Europe", [" de", "FR", ""])
        assert zone.country_codes == ["DE", "FR"]
        assert zone.covers("fr")
        assert not zone.covers("US")

    def test_zone_needs_a_country(self):
        with pytest.raises(ValidationError):
            ShippingZone.create("Nowhere", [])
