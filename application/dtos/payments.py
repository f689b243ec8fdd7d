"""
Payment DTOs (Pydantic v2) used at application boundaries.

All request objects are frozen: they are never mutated after construction.
Results and webhook payloads are discriminated unions; switch on
``checkout_mode`` / ``type`` rather than probing attributes.
"""
from __future__ import annotations

import math
from datetime import datetime
from typing import Annotated, Any, Callable, Literal, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from domain.payment.enums import (
    CheckoutMode,
    PaymentProvider,
    PaymentStatus,
    RefundStatus,
    ResolutionStrategy,
    WebhookEventType,
)
from shared.codes import ErrorCode


class Money(BaseModel):
    """Amount in the smallest currency unit (paise, cents, ...)."""

    model_config = ConfigDict(frozen=True)

    amount: int
    currency: str


class Address(BaseModel):
    model_config = ConfigDict(frozen=True)

    line1: Optional[str] = None
    line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    # ISO-3166-1 alpha-2
    country: Optional[str] = None


class CustomerInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    name: Optional[str] = None
    billing_address: Optional[Address] = None


class CreatePaymentInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    money: Money
    success_url: str
    cancel_url: str
    customer: Optional[CustomerInfo] = None
    order_id: Optional[str] = None
    description: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    idempotency_key: Optional[str] = None
    expires_in_seconds: Optional[int] = None
    preferred_checkout_mode: Optional[CheckoutMode] = None


class HostedCheckoutResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    checkout_mode: Literal["hosted"] = "hosted"
    provider: PaymentProvider
    provider_payment_id: str
    unipay_id: str
    status: PaymentStatus
    checkout_url: str
    expires_at: Optional[datetime] = None
    metadata: Optional[dict[str, Any]] = None
    raw: Any = None


class SdkPayload(BaseModel):
    """Credentials for a frontend SDK. Provider-specific extras go in provider_data."""

    model_config = ConfigDict(frozen=True)

    client_secret: Optional[str] = None
    order_id: Optional[str] = None
    amount: Optional[int] = None
    currency: Optional[str] = None
    provider_data: Optional[dict[str, Any]] = None


class SdkCheckoutResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    checkout_mode: Literal["sdk"] = "sdk"
    provider: PaymentProvider
    provider_payment_id: str
    unipay_id: str
    status: PaymentStatus
    sdk_payload: SdkPayload
    expires_at: Optional[datetime] = None
    metadata: Optional[dict[str, Any]] = None
    raw: Any = None


CreatePaymentResult = Annotated[
    Union[HostedCheckoutResult, SdkCheckoutResult],
    Field(discriminator="checkout_mode"),
]


class Payment(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: PaymentProvider
    provider_payment_id: str
    unipay_id: str
    status: PaymentStatus
    money: Money
    amount_refunded: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    captured_at: Optional[datetime] = None
    customer: Optional[CustomerInfo] = None
    metadata: Optional[dict[str, Any]] = None
    failure_reason: Optional[str] = None
    failure_code: Optional[str] = None
    raw: Any = None


class CreateRefundInput(BaseModel):
    """Omit ``amount`` for a full refund."""

    model_config = ConfigDict(frozen=True)

    amount: Optional[int] = None
    reason: Optional[str] = None
    refund_id: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    idempotency_key: Optional[str] = None


class Refund(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: PaymentProvider
    provider_refund_id: str
    provider_payment_id: str
    unipay_id: str
    status: RefundStatus
    money: Money
    created_at: datetime
    reason: Optional[str] = None
    failure_reason: Optional[str] = None
    raw: Any = None


class RefundList(BaseModel):
    model_config = ConfigDict(frozen=True)

    refunds: list[Refund] = Field(default_factory=list)
    has_more: bool = False


# ---------------------------------------------------------------------------
# Webhooks
# ---------------------------------------------------------------------------


class WebhookRequest(BaseModel):
    """Raw inbound webhook: exact body as received plus headers in any case."""

    model_config = ConfigDict(frozen=True)

    raw_body: str
    headers: Mapping[str, Union[str, Sequence[str], None]] = Field(default_factory=dict)


class WebhookVerificationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_valid: bool
    error: Optional[str] = None
    # Distinguishes a stale timestamp from a bad signature
    error_code: Optional[ErrorCode] = None
    timestamp: Optional[datetime] = None


class WebhookConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: PaymentProvider
    signing_secret: str
    timestamp_tolerance_seconds: Optional[int] = None


class PaymentWebhookPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["payment"] = "payment"
    provider_payment_id: str
    status: PaymentStatus
    money: Money
    metadata: Optional[dict[str, Any]] = None
    failure_reason: Optional[str] = None
    failure_code: Optional[str] = None


class RefundWebhookPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["refund"] = "refund"
    provider_refund_id: str
    provider_payment_id: str
    status: RefundStatus
    money: Money
    failure_reason: Optional[str] = None


class UnknownWebhookPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["unknown"] = "unknown"
    data: Any = None


WebhookPayload = Annotated[
    Union[PaymentWebhookPayload, RefundWebhookPayload, UnknownWebhookPayload],
    Field(discriminator="type"),
]


class WebhookEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: PaymentProvider
    event_type: WebhookEventType
    provider_event_id: str
    # Original event name, kept for audit
    provider_event_type: str
    timestamp: datetime
    payload: WebhookPayload
    raw: Any = None


# ---------------------------------------------------------------------------
# Provider resolution
# ---------------------------------------------------------------------------


ProviderResolver = Callable[[CreatePaymentInput, list[PaymentProvider]], Optional[PaymentProvider]]


class AmountRoute(BaseModel):
    model_config = ConfigDict(frozen=True)

    currency: str
    # Inclusive upper bound; math.inf for an open-ended route
    max_amount: float = math.inf
    provider: PaymentProvider


class ResolutionConfig(BaseModel):
    """Validated once when the orchestrator is built; see ResolutionEngine."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    strategy: Union[ResolutionStrategy, str] = ResolutionStrategy.FIRST_AVAILABLE
    default_provider: Optional[PaymentProvider] = None
    custom_resolver: Optional[ProviderResolver] = None
    amount_routes: list[AmountRoute] = Field(default_factory=list)
