"""ShippingZone aggregate: a named group of destination countries."""

import json

from protean.exceptions import ValidationError
from protean.fields import Boolean, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront


def normalize_country(code: str | None) -> str:
    return (code or "").strip().upper()


@storefront.aggregate
class ShippingZone:
    name = String(required=True, max_length=100)
    countries = Text(default="[]")  # JSON array of ISO 3166-1 alpha-2 codes
    is_active = Boolean(default=True)
    sort_order = Integer(default=0)

    @classmethod
    def create(cls, name, countries, is_active=True, sort_order=0):
        codes = [normalize_country(code) for code in countries if normalize_country(code)]
        if not codes:
            raise ValidationError({"countries": ["A shipping zone needs at least one country"]})
        return cls(
            name=name,
            countries=json.dumps(codes),
            is_active=is_active,
            sort_order=sort_order,
        )

    @property
    def country_codes(self) -> list[str]:
        return json.loads(self.countries) if self.countries else []

    def covers(self, country_code: str) -> bool:
        return normalize_country(country_code) in self.country_codes


def find_zone_for_country(country_code: str) -> ShippingZone | None:
    """First active zone, by ``(sort_order, name)``, whose country list has the code."""
    code = normalize_country(country_code)
    if not code:
        return None
    zones = current_domain.repository_for(ShippingZone)._dao.query.filter(is_active=True).all().items
    for zone in sorted(zones, key=lambda z: (z.sort_order, z.name)):
        if zone.covers(code):
            return zone
    return None
