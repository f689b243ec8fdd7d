"""
Capability gating between resolution and delegation.

Checks run in a fixed order so the first failing rule decides the error:
provider registered, currency supported, requested checkout mode supported,
then adapter limits (amount bounds, metadata size).
"""
from __future__ import annotations

from typing import Optional

from application.dtos.payments import CreatePaymentInput
from application.services.provider_registry import ProviderRegistry
from domain.payment.capability import AdapterLimits, has_capability, supports_checkout_mode, supports_currency
from domain.payment.enums import AdapterCapability, PaymentProvider
from domain.payment.exceptions import (
    InvalidAmountError,
    InvalidMetadataError,
    PartialRefundNotSupportedError,
    ProviderNotFoundError,
    UnsupportedCheckoutModeError,
    UnsupportedCurrencyError,
)


def _check_limits(limits: AdapterLimits, input: CreatePaymentInput) -> None:
    amount = input.money.amount
    if limits.min_amount is not None and amount < limits.min_amount:
        raise InvalidAmountError(amount, f"below provider minimum of {limits.min_amount}")
    if limits.max_amount is not None and amount > limits.max_amount:
        raise InvalidAmountError(amount, f"above provider maximum of {limits.max_amount}")

    metadata = input.metadata or {}
    if limits.max_metadata_keys is not None and len(metadata) > limits.max_metadata_keys:
        raise InvalidMetadataError(f"at most {limits.max_metadata_keys} keys allowed, got {len(metadata)}")
    if limits.max_metadata_value_length is not None:
        for key, value in metadata.items():
            if len(str(value)) > limits.max_metadata_value_length:
                raise InvalidMetadataError(
                    f"value for '{key}' exceeds {limits.max_metadata_value_length} characters"
                )


class CapabilityValidator:
    def __init__(self, registry: ProviderRegistry) -> None:
        self.registry = registry

    def validate(self, provider: PaymentProvider | str, input: CreatePaymentInput) -> None:
        caps = self.registry.capabilities(provider)
        if caps is None:
            raise ProviderNotFoundError(provider)
        if not supports_currency(caps, input.money.currency):
            raise UnsupportedCurrencyError(provider, input.money.currency)
        mode = input.preferred_checkout_mode
        if mode is not None and not supports_checkout_mode(caps, mode):
            raise UnsupportedCheckoutModeError(provider, mode)
        _check_limits(caps.limits, input)

    def validate_refund(self, provider: PaymentProvider | str, amount: Optional[int] = None) -> None:
        """A refund with an explicit amount counts as partial."""
        caps = self.registry.capabilities(provider)
        if caps is None:
            raise ProviderNotFoundError(provider)
        if amount is not None and not has_capability(caps, AdapterCapability.PARTIAL_REFUND):
            raise PartialRefundNotSupportedError(provider)
