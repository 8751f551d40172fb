"""Shipping options and prices for a destination, weight and order amount."""

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.shipping.method import ShippingMethod, ShippingQuote
from storefront.shipping.zone import ShippingZone, find_zone_for_country, normalize_country
from storefront.shared.money import ZERO, format_money, from_cents

logger = structlog.get_logger(__name__)

NO_ZONE_ERROR = "Shipping is not available to your country"
NO_METHODS_ERROR = "No shipping methods available for your location"


@dataclass(frozen=True)
class DeliveryEstimate:
    min_days: int
    max_days: int
    min_date: date
    max_date: date

    @property
    def text(self) -> str:
        if self.min_days == self.max_days:
            return f"{self.min_days} business days"
        return f"{self.min_days}-{self.max_days} business days"

    def to_dict(self) -> dict:
        return {
            "min_days": self.min_days,
            "max_days": self.max_days,
            "min_date": self.min_date.isoformat(),
            "max_date": self.max_date.isoformat(),
            "min_date_formatted": f"{self.min_date:%b} {self.min_date.day}, {self.min_date.year}",
            "max_date_formatted": f"{self.max_date:%b} {self.max_date.day}, {self.max_date.year}",
        }


@dataclass(frozen=True)
class ShippingOption:
    method_id: str
    name: str
    description: str | None
    cost: Decimal
    free_shipping: bool
    delivery_text: str
    estimated_delivery: DeliveryEstimate | None = None

    @property
    def cost_formatted(self) -> str:
        return format_money(self.cost)


@dataclass(frozen=True)
class AvailableMethods:
    success: bool
    zone: str | None = None
    methods: list[ShippingOption] = field(default_factory=list)
    error: str | None = None


@dataclass(frozen=True)
class ShippingValidation:
    valid: bool
    error: str | None = None
    cost: Decimal = ZERO
    free_shipping: bool = False
    method_id: str | None = None
    method_name: str | None = None

    @classmethod
    def invalid(cls, error: str) -> "ShippingValidation":
        return cls(valid=False, error=error)


def delivery_estimate(method: ShippingMethod, today: date | None = None) -> DeliveryEstimate | None:
    if method.estimated_days_min is None:
        return None
    today = today or date.today()
    min_days = method.estimated_days_min
    max_days = method.estimated_days_max if method.estimated_days_max is not None else min_days
    return DeliveryEstimate(
        min_days=min_days,
        max_days=max_days,
        min_date=today + timedelta(days=min_days),
        max_date=today + timedelta(days=max_days),
    )


class ShippingCalculator:
    def _find_method(self, method_id) -> ShippingMethod | None:
        if not method_id:
            return None
        try:
            return current_domain.repository_for(ShippingMethod).get(str(method_id))
        except ObjectNotFoundError:
            return None

    def _find_zone(self, zone_id) -> ShippingZone | None:
        try:
            return current_domain.repository_for(ShippingZone).get(str(zone_id))
        except ObjectNotFoundError:
            return None

    def methods_for_zone(self, zone: ShippingZone) -> list[ShippingMethod]:
        """Active methods of a zone ordered by ``(sort_order, name)``."""
        methods = (
            current_domain.repository_for(ShippingMethod)
            ._dao.query.filter(zone_id=str(zone.id), is_active=True)
            .all()
            .items
        )
        return sorted(methods, key=lambda m: (m.sort_order, m.name))

    # -------------------------------------------------------------------
    # Options and prices
    # -------------------------------------------------------------------
    def get_available_methods(self, country_code: str, weight: float, order_amount) -> AvailableMethods:
        zone = find_zone_for_country(country_code)
        if zone is None:
            logger.info("shipping_zone_not_found", country=normalize_country(country_code))
            return AvailableMethods(success=False, error=NO_ZONE_ERROR)

        methods = self.methods_for_zone(zone)
        if not methods:
            return AvailableMethods(success=False, zone=zone.name, error=NO_METHODS_ERROR)

        options = []
        for method in methods:
            quote = method.quote(weight, order_amount)
            if not quote.success:
                continue
            estimate = delivery_estimate(method)
            options.append(
                ShippingOption(
                    method_id=str(method.id),
                    name=method.name,
                    description=method.description,
                    cost=quote.cost,
                    free_shipping=quote.free_shipping,
                    delivery_text=estimate.text if estimate else "Delivery time varies",
                    estimated_delivery=estimate,
                )
            )

        # sorted() is stable, so equal costs keep their (sort_order, name) order
        options = sorted(options, key=lambda option: option.cost)
        return AvailableMethods(success=True, zone=zone.name, methods=options)

    def calculate_cost(self, method_id, weight: float, order_amount) -> ShippingQuote:
        method = self._find_method(method_id)
        if method is None:
            return ShippingQuote.failed("Shipping method not found", method_id=method_id)
        return method.quote(weight, order_amount)

    def validate_shipping_method(
        self,
        method_id,
        country_code: str,
        weight: float,
        order_amount,
    ) -> ShippingValidation:
        """Re-check a chosen method at submission time: existence, zone, country and price."""
        method = self._find_method(method_id)
        if method is None:
            return ShippingValidation.invalid("Invalid shipping method")
        if not method.is_active:
            return ShippingValidation.invalid("Shipping method is not available")

        zone = self._find_zone(method.zone_id)
        if zone is None:
            return ShippingValidation.invalid("Shipping zone not found")
        if not zone.covers(normalize_country(country_code)):
            return ShippingValidation.invalid("Shipping method not available for your country")

        quote = method.quote(weight, order_amount)
        if not quote.success:
            return ShippingValidation.invalid(quote.error)

        return ShippingValidation(
            valid=True,
            cost=quote.cost,
            free_shipping=quote.free_shipping,
            method_id=str(method.id),
            method_name=method.name,
        )

    def get_cheapest_method(self, country_code: str, weight: float, order_amount) -> ShippingOption | None:
        result = self.get_available_methods(country_code, weight, order_amount)
        if not result.success or not result.methods:
            return None
        return result.methods[0]

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @staticmethod
    def calculate_total_weight(lines) -> float:
        """Sum ``weight * quantity`` over lines. A missing weight counts as zero."""
        total = 0.0
        for line in lines:
            if isinstance(line, dict):
                weight, quantity = line.get("weight"), line.get("quantity")
            else:
                weight, quantity = getattr(line, "weight", None), getattr(line, "quantity", None)
            total += float(weight or 0) * int(quantity if quantity is not None else 1)
        return total

    def get_delivery_estimate(self, method_id) -> DeliveryEstimate | None:
        method = self._find_method(method_id)
        if method is None:
            return None
        return delivery_estimate(method)

    def get_shipping_rates_display(self, country_code: str) -> dict:
        """Rate card for a destination: every active method with its brackets."""
        zone = find_zone_for_country(country_code)
        if zone is None:
            return {"available": False, "message": "Shipping is not available to this country"}

        rates = []
        for method in self.methods_for_zone(zone):
            estimate = delivery_estimate(method)
            rate = {
                "id": str(method.id),
                "name": method.name,
                "description": method.description,
                "base_cost": from_cents(method.base_cost_cents),
                "cost_per_kg": from_cents(method.cost_per_kg_cents),
                "delivery_time": estimate.text if estimate else "Delivery time varies",
                "weight_brackets": [
                    {
                        "min_weight": bracket.min_weight,
                        "max_weight": bracket.max_weight,
                        "cost": from_cents(bracket.cost_cents),
                        "range_text": bracket.range_text,
                    }
                    for bracket in method.sorted_brackets
                ],
            }
            if method.free_shipping_threshold is not None:
                rate["free_shipping_threshold"] = method.free_shipping_threshold
                rate["free_shipping_text"] = method.free_shipping_text
            rates.append(rate)

        return {"available": True, "zone_name": zone.name, "methods": rates}
