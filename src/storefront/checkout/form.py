"""Checkout submission and its field-level validation."""

import re
from dataclasses import dataclass, field

from storefront.payments.gateway.port import PaymentMethod
from storefront.payments.processor import PaymentProcessor

REQUIRED_FIELDS = (
    ("email", "Email address"),
    ("first_name", "First name"),
    ("last_name", "Last name"),
    ("address", "Shipping address"),
    ("city", "City"),
    ("country", "Country"),
    ("postal_code", "Postal code"),
    ("payment_method", "Payment method"),
    ("shipping_method", "Shipping method"),
)

# Column limits of the Order aggregate and its Address value object
FIELD_LIMITS = (
    ("email", "Email address", 255),
    ("first_name", "First name", 100),
    ("last_name", "Last name", 100),
    ("phone", "Phone", 50),
    ("address", "Shipping address", 255),
    ("city", "City", 100),
    ("state", "State", 100),
    ("postal_code", "Postal code", 20),
    ("billing_address", "Billing address", 255),
    ("billing_city", "Billing city", 100),
    ("billing_state", "Billing state", 100),
    ("billing_postal_code", "Billing postal code", 20),
)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")
COUNTRY_PATTERN = re.compile(r"^[A-Z]{2}$")


def _clean(value) -> str:
    return str(value).strip() if value is not None else ""


@dataclass(frozen=True)
class CheckoutSubmission:
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    address: str = ""
    city: str = ""
    country: str = ""
    postal_code: str = ""
    payment_method: str = ""
    shipping_method: str = ""
    state: str = ""
    phone: str = ""
    notes: str = ""
    billing_same: bool = True
    billing_address: str = ""
    billing_city: str = ""
    billing_state: str = ""
    billing_postal_code: str = ""
    billing_country: str = ""
    payment_data: dict = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: dict) -> "CheckoutSubmission":
        """Build a submission from raw form data, trimming every text field."""
        values = {}
        for name in cls.__dataclass_fields__:
            if name in ("billing_same", "payment_data") or name not in data:
                continue
            values[name] = _clean(data[name])
        if "country" in values:
            values["country"] = values["country"].upper()
        if "billing_country" in values:
            values["billing_country"] = values["billing_country"].upper()

        billing_same = data.get("billing_same", True)
        if isinstance(billing_same, str):
            billing_same = billing_same.strip().lower() in ("1", "true", "yes", "on")
        return cls(
            billing_same=bool(billing_same),
            payment_data=dict(data.get("payment_data") or {}),
            **values,
        )

    @property
    def method(self) -> PaymentMethod | None:
        return PaymentMethod.parse(self.payment_method)

    def shipping_address(self) -> dict:
        return {
            "street": self.address,
            "city": self.city,
            "state": self.state or None,
            "postal_code": self.postal_code,
            "country": self.country,
        }

    def billing_address_fields(self) -> dict | None:
        """A separate billing address, or None when billing matches shipping."""
        if self.billing_same or not self.billing_address:
            return None
        return {
            "street": self.billing_address,
            "city": self.billing_city,
            "state": self.billing_state or None,
            "postal_code": self.billing_postal_code,
            "country": self.billing_country,
        }


def validate_submission(submission: CheckoutSubmission, processor: PaymentProcessor | None = None) -> list[str]:
    """Field-level problems in the order they should be shown. Empty when valid."""
    processor = processor or PaymentProcessor()
    errors = []

    for name, label in REQUIRED_FIELDS:
        if not getattr(submission, name):
            errors.append(f"{label} is required")

    for name, label, limit in FIELD_LIMITS:
        if len(getattr(submission, name)) > limit:
            errors.append(f"{label} must be at most {limit} characters")

    if submission.email and not EMAIL_PATTERN.match(submission.email):
        errors.append("Please enter a valid email address")

    if submission.country and not COUNTRY_PATTERN.match(submission.country):
        errors.append("Please select a valid country")

    if submission.payment_method:
        method = submission.method
        if method is None:
            errors.append("Invalid payment method")
        elif not processor.is_method_available(method):
            errors.append(f"{method.label} is not available at the moment")

    billing = submission.billing_address_fields()
    if billing is not None:
        for name, label in (
            ("city", "Billing city"),
            ("postal_code", "Billing postal code"),
            ("country", "Billing country"),
        ):
            if not billing[name]:
                errors.append(f"{label} is required")
        if billing["country"] and not COUNTRY_PATTERN.match(billing["country"]):
            errors.append("Please select a valid billing country")

    return errors
