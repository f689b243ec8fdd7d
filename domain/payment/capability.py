"""
Capability model: a static, read-only description attached to each adapter.

The orchestrator consults it for routing (by-currency) and for gating
(currency, checkout mode, limits) before any call reaches a gateway.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from domain.payment.enums import (
    AdapterCapability,
    CHECKOUT_MODE_CAPABILITY,
    CheckoutMode,
    PaymentProvider,
)


class AdapterLimits(BaseModel):
    """Amounts are in the smallest currency unit."""

    model_config = ConfigDict(frozen=True)

    min_amount: Optional[int] = None
    max_amount: Optional[int] = None
    max_metadata_keys: Optional[int] = None
    max_metadata_value_length: Optional[int] = None


class AdapterCapabilities(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: PaymentProvider
    capabilities: frozenset[AdapterCapability] = Field(default_factory=frozenset)
    # ISO-4217 codes, stored uppercased
    supported_currencies: tuple[str, ...] = ()
    supported_payment_methods: tuple[str, ...] = ()
    limits: AdapterLimits = Field(default_factory=AdapterLimits)

    @field_validator("supported_currencies", mode="before")
    @classmethod
    def _upper_currencies(cls, v):
        return tuple(str(c).upper() for c in (v or ()))


def has_capability(capabilities: AdapterCapabilities, capability: AdapterCapability) -> bool:
    return capability in capabilities.capabilities


def supports_currency(capabilities: AdapterCapabilities, currency: str) -> bool:
    return (currency or "").upper() in capabilities.supported_currencies


def supports_checkout_mode(capabilities: AdapterCapabilities, mode: CheckoutMode) -> bool:
    return has_capability(capabilities, CHECKOUT_MODE_CAPABILITY[CheckoutMode(mode)])
