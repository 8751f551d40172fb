"""Manual bank transfer: no network call, payment stays pending until confirmed."""

from decimal import Decimal
from uuid import uuid4

from storefront.config import BankDetails
from storefront.payments.gateway.port import (
    ChargeStatus,
    PaymentGateway,
    PaymentMethod,
    PaymentResult,
    Verification,
)
from storefront.shared.money import to_decimal


def generate_transfer_reference() -> str:
    return "BT-" + uuid4().hex[:10].upper()


class ManualTransferGateway(PaymentGateway):
    method = PaymentMethod.MANUAL_TRANSFER

    def __init__(self, bank: BankDetails | None = None, currency: str = "USD") -> None:
        self.bank = bank or BankDetails()
        self.currency = currency

    def is_configured(self) -> bool:
        return True

    def charge(self, amount: Decimal, payment_data: dict, order_context: dict) -> PaymentResult:
        reference = generate_transfer_reference()
        return PaymentResult(
            success=True,
            method=self.method,
            amount=amount,
            status=ChargeStatus.PENDING.value,
            transaction_id=reference,
            reference=reference,
            bank_details=self.bank.as_dict(self.currency),
            instructions=(
                f"Please transfer {to_decimal(amount)} {self.currency} to the bank account below. "
                f"Use reference: {reference} in your transfer description."
            ),
        )

    def verify(self, transaction_id: str) -> Verification:
        return Verification(success=True, status=ChargeStatus.PENDING.value, transaction_id=transaction_id)
