"""ShippingMethod aggregate and the shipping cost rules.

Cost resolution order for a method that passes its constraints:

1. Free shipping when the order amount reaches ``free_shipping_threshold``.
2. The matching weight bracket. Brackets are ordered by ``min_weight``; a
   bracket covers ``min_weight <= weight < max_weight``, except the last
   bracket which also includes its ``max_weight`` (or is open-ended when it
   has none). A weight above every bracket pays the last bracket's cost.
3. ``base_cost + cost_per_kg * weight`` when no bracket applies.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from protean.exceptions import ValidationError
from protean.fields import Boolean, Float, HasMany, Identifier, Integer, String, Text

from storefront.domain import storefront
from storefront.shared.money import CENT, ZERO, format_money, from_cents, to_cents, to_decimal


@dataclass(frozen=True)
class ShippingQuote:
    """Either a priced method (``success``) or the reason it cannot be used."""

    success: bool
    error: str | None = None
    cost: Decimal = ZERO
    free_shipping: bool = False
    method_id: str | None = None
    method_name: str | None = None
    estimated_days_min: int | None = None
    estimated_days_max: int | None = None

    @classmethod
    def failed(cls, error: str, method_id=None) -> "ShippingQuote":
        return cls(success=False, error=error, method_id=method_id)


def _weight_text(value: float) -> str:
    return f"{value:g}"


def format_weight_range(min_weight: float, max_weight: float | None) -> str:
    if max_weight is None:
        return f"Over {_weight_text(min_weight)}kg"
    if min_weight == 0:
        return f"Up to {_weight_text(max_weight)}kg"
    return f"{_weight_text(min_weight)}kg - {_weight_text(max_weight)}kg"


@storefront.entity(part_of="ShippingMethod")
class WeightBracket:
    min_weight = Float(required=True, min_value=0.0)
    max_weight = Float(min_value=0.0)
    cost_cents = Integer(required=True, min_value=0)

    @property
    def range_text(self) -> str:
        return format_weight_range(self.min_weight, self.max_weight)


@storefront.aggregate
class ShippingMethod:
    zone_id = Identifier(required=True)
    name = String(required=True, max_length=100)
    description = Text()
    base_cost_cents = Integer(default=0, min_value=0)
    cost_per_kg_cents = Integer(default=0, min_value=0)
    min_weight = Float(min_value=0.0)
    max_weight = Float(min_value=0.0)
    min_order_amount_cents = Integer(min_value=0)
    free_shipping_threshold_cents = Integer(min_value=0)
    estimated_days_min = Integer(min_value=0)
    estimated_days_max = Integer(min_value=0)
    is_active = Boolean(default=True)
    sort_order = Integer(default=0)
    weight_brackets = HasMany(WeightBracket)

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, zone_id, name, base_cost, cost_per_kg=0, brackets=None, **options):
        """Build a method from Decimal-style amounts.

        ``brackets`` is an iterable of ``(min_weight, max_weight, cost)``.
        Money options (``min_order_amount``, ``free_shipping_threshold``) are
        converted to cents; everything else is passed through.
        """
        for money_option in ("min_order_amount", "free_shipping_threshold"):
            if options.get(money_option) is not None:
                options[f"{money_option}_cents"] = to_cents(options.pop(money_option))
            else:
                options.pop(money_option, None)

        method = cls(
            zone_id=zone_id,
            name=name,
            base_cost_cents=to_cents(base_cost),
            cost_per_kg_cents=to_cents(cost_per_kg),
            **options,
        )
        for min_weight, max_weight, cost in brackets or []:
            method.add_bracket(min_weight, max_weight, cost)
        return method

    def add_bracket(self, min_weight, max_weight, cost):
        if max_weight is not None and max_weight <= min_weight:
            raise ValidationError({"weight_brackets": ["Bracket max_weight must be greater than min_weight"]})
        self.add_weight_brackets(
            WeightBracket(
                min_weight=float(min_weight),
                max_weight=float(max_weight) if max_weight is not None else None,
                cost_cents=to_cents(cost),
            )
        )

    # -------------------------------------------------------------------
    # Cost rules
    # -------------------------------------------------------------------
    @property
    def sorted_brackets(self) -> list[WeightBracket]:
        return sorted(self.weight_brackets, key=lambda bracket: bracket.min_weight)

    @property
    def free_shipping_threshold(self) -> Decimal | None:
        if self.free_shipping_threshold_cents is None:
            return None
        return from_cents(self.free_shipping_threshold_cents)

    def constraint_error(self, weight: float, order_amount: Decimal) -> str | None:
        """The first violated constraint, checked in a fixed order."""
        if not self.is_active:
            return "Shipping method is not available"
        if self.min_order_amount_cents is not None and order_amount < from_cents(self.min_order_amount_cents):
            return (
                f"Minimum order amount of {from_cents(self.min_order_amount_cents)} "
                "required for this shipping method"
            )
        if self.min_weight is not None and weight < self.min_weight:
            return f"Minimum weight of {_weight_text(self.min_weight)}kg required"
        if self.max_weight is not None and weight > self.max_weight:
            return f"Maximum weight of {_weight_text(self.max_weight)}kg exceeded"
        return None

    def bracket_for(self, weight: float) -> WeightBracket | None:
        brackets = self.sorted_brackets
        if not brackets:
            return None

        last = brackets[-1]
        for bracket in brackets:
            if weight < bracket.min_weight:
                continue
            # The last bracket also absorbs anything heavier than its max
            if bracket is last:
                return bracket
            if bracket.max_weight is None or weight < bracket.max_weight:
                return bracket
        return None

    def formula_cost(self, weight: float) -> Decimal:
        cents = Decimal(self.base_cost_cents or 0) + Decimal(self.cost_per_kg_cents or 0) * Decimal(str(weight))
        return (cents / 100).quantize(CENT, rounding=ROUND_HALF_UP)

    def quote(self, weight: float, order_amount) -> ShippingQuote:
        order_amount = to_decimal(order_amount)
        error = self.constraint_error(weight, order_amount)
        if error:
            return ShippingQuote.failed(error, method_id=str(self.id))

        threshold = self.free_shipping_threshold
        if threshold is not None and order_amount >= threshold:
            return self._priced(ZERO, free_shipping=True)

        bracket = self.bracket_for(weight)
        if bracket is not None:
            return self._priced(from_cents(bracket.cost_cents))
        return self._priced(self.formula_cost(weight))

    def _priced(self, cost: Decimal, free_shipping: bool = False) -> ShippingQuote:
        return ShippingQuote(
            success=True,
            cost=cost,
            free_shipping=free_shipping,
            method_id=str(self.id),
            method_name=self.name,
            estimated_days_min=self.estimated_days_min,
            estimated_days_max=self.estimated_days_max,
        )

    # -------------------------------------------------------------------
    # Display
    # -------------------------------------------------------------------
    @property
    def delivery_text(self) -> str:
        if self.estimated_days_min is None:
            return "Delivery time varies"
        max_days = self.estimated_days_max if self.estimated_days_max is not None else self.estimated_days_min
        if self.estimated_days_min == max_days:
            return f"{max_days} business days"
        return f"{self.estimated_days_min}-{max_days} business days"

    @property
    def free_shipping_text(self) -> str | None:
        threshold = self.free_shipping_threshold
        if threshold is None:
            return None
        return f"Free shipping on orders over {format_money(threshold)}"
