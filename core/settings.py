"""
Payment-related settings using pydantic-settings v2 with nested env keys.

Examples:
    PAYMENT__RESOLUTION__STRATEGY=by-currency
    PAYMENT__RESOLUTION__DEFAULT_PROVIDER=stripe
    PAYMENT__STRIPE__SECRET_KEY=sk_test_...
    PAYMENT__STRIPE__WEBHOOK_SECRET=whsec_...
    PAYMENT__RAZORPAY__KEY_ID=rzp_test_...
"""
from __future__ import annotations

import math
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field


class PaymentTimeouts(BaseModel):
    connect: float = 1.0
    read: float = 10.0
    write: float = 10.0
    total: float = 30.0


class PaymentRetry(BaseModel):
    """Adapter-level transport retry. The orchestrator itself never retries."""

    max: int = 2
    base_backoff: float = 0.2


class WebhookSettings(BaseModel):
    tolerance_seconds: int = 300


class AmountRouteSettings(BaseModel):
    currency: str
    max_amount: float = math.inf
    provider: str


class ResolutionSettings(BaseModel):
    strategy: str = "first-available"
    default_provider: Optional[str] = None
    amount_routes: list[AmountRouteSettings] = Field(default_factory=list)


class StripeSettings(BaseModel):
    enabled: bool = False
    secret_key: Optional[str] = None
    webhook_secret: Optional[str] = None
    api_version: Optional[str] = None
    max_network_retries: int = 2


class RazorpaySettings(BaseModel):
    enabled: bool = False
    key_id: Optional[str] = None
    key_secret: Optional[str] = None
    webhook_secret: Optional[str] = None
    base_url: str = "https://api.razorpay.com/v1"


class PaymentSettings(BaseSettings):
    resolution: ResolutionSettings = Field(default_factory=ResolutionSettings)
    timeouts: PaymentTimeouts = Field(default_factory=PaymentTimeouts)
    retry: PaymentRetry = Field(default_factory=PaymentRetry)
    webhook: WebhookSettings = Field(default_factory=WebhookSettings)

    stripe: StripeSettings = Field(default_factory=StripeSettings)
    razorpay: RazorpaySettings = Field(default_factory=RazorpaySettings)

    @property
    def any_provider_enabled(self) -> bool:
        return self.stripe.enabled or self.razorpay.enabled

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PAYMENT__",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )


payment_settings = PaymentSettings()
