"""Shared fixtures: an in-memory gateway adapter and request builders."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

import pytest

from application.dtos.payments import (
    CreatePaymentInput,
    CreateRefundInput,
    CustomerInfo,
    HostedCheckoutResult,
    Money,
    Payment,
    PaymentWebhookPayload,
    Refund,
    RefundList,
    SdkCheckoutResult,
    SdkPayload,
    WebhookConfig,
    WebhookEvent,
    WebhookRequest,
    WebhookVerificationResult,
)
from application.utils.webhooks import get_header, verify_hmac_sha256
from domain.payment.capability import AdapterCapabilities, AdapterLimits
from domain.payment.enums import (
    AdapterCapability,
    CheckoutMode,
    PaymentProvider,
    PaymentStatus,
    RefundStatus,
    WebhookEventType,
)
from domain.payment.unipay_id import create_unipay_id


NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)
DEFAULT_CAPABILITIES = frozenset(
    {
        AdapterCapability.HOSTED_CHECKOUT,
        AdapterCapability.SDK_CHECKOUT,
        AdapterCapability.FULL_REFUND,
        AdapterCapability.PARTIAL_REFUND,
        AdapterCapability.WEBHOOKS,
    }
)


class StubAdapter:
    """Gateway adapter that never leaves the process and records its calls."""

    def __init__(
        self,
        provider: PaymentProvider,
        currencies: Iterable[str] = ("USD", "INR"),
        capabilities: Iterable[AdapterCapability] = DEFAULT_CAPABILITIES,
        limits: Optional[AdapterLimits] = None,
    ) -> None:
        self.provider = provider
        self.capabilities = AdapterCapabilities(
            provider=provider,
            capabilities=frozenset(capabilities),
            supported_currencies=tuple(currencies),
            limits=limits or AdapterLimits(),
        )
        self.calls: list[tuple] = []
        self.closed = False

    async def create_payment(self, input: CreatePaymentInput):
        self.calls.append(("create_payment", input))
        payment_id = f"{self.provider.value}_pay_{len(self.calls)}"
        unipay_id = create_unipay_id(self.provider, payment_id)
        if input.preferred_checkout_mode == CheckoutMode.SDK:
            return SdkCheckoutResult(
                provider=self.provider,
                provider_payment_id=payment_id,
                unipay_id=unipay_id,
                status=PaymentStatus.CREATED,
                sdk_payload=SdkPayload(client_secret="secret_123"),
            )
        return HostedCheckoutResult(
            provider=self.provider,
            provider_payment_id=payment_id,
            unipay_id=unipay_id,
            status=PaymentStatus.CREATED,
            checkout_url=f"https://pay.example.com/{payment_id}",
        )

    async def get_payment(self, provider_payment_id: str) -> Payment:
        self.calls.append(("get_payment", provider_payment_id))
        return Payment(
            provider=self.provider,
            provider_payment_id=provider_payment_id,
            unipay_id=create_unipay_id(self.provider, provider_payment_id),
            status=PaymentStatus.SUCCEEDED,
            money=Money(amount=1000, currency="USD"),
            created_at=NOW,
            updated_at=NOW,
        )

    def _refund(self, refund_id: str, payment_id: str, amount: int) -> Refund:
        return Refund(
            provider=self.provider,
            provider_refund_id=refund_id,
            provider_payment_id=payment_id,
            unipay_id=create_unipay_id(self.provider, refund_id),
            status=RefundStatus.PENDING,
            money=Money(amount=amount, currency="USD"),
            created_at=NOW,
        )

    async def create_refund(self, provider_payment_id: str, input: Optional[CreateRefundInput] = None) -> Refund:
        self.calls.append(("create_refund", provider_payment_id, input))
        amount = input.amount if input and input.amount else 1000
        return self._refund("re_1", provider_payment_id, amount)

    async def get_refund(self, provider_refund_id: str) -> Refund:
        self.calls.append(("get_refund", provider_refund_id))
        return self._refund(provider_refund_id, "pay_1", 500)

    async def list_refunds(self, provider_payment_id: str) -> RefundList:
        self.calls.append(("list_refunds", provider_payment_id))
        return RefundList(refunds=[self._refund("re_1", provider_payment_id, 500)], has_more=False)

    def verify_webhook_signature(self, request: WebhookRequest, config: WebhookConfig) -> WebhookVerificationResult:
        return verify_hmac_sha256(request.raw_body, get_header(request.headers, "x-stub-signature"), config.signing_secret)

    def parse_webhook_event(self, request: WebhookRequest) -> WebhookEvent:
        self.calls.append(("parse_webhook_event", request.raw_body))
        return WebhookEvent(
            provider=self.provider,
            event_type=WebhookEventType.PAYMENT_SUCCEEDED,
            provider_event_id="evt_1",
            provider_event_type="stub.succeeded",
            timestamp=NOW,
            payload=PaymentWebhookPayload(
                provider_payment_id="pay_1",
                status=PaymentStatus.SUCCEEDED,
                money=Money(amount=1000, currency="USD"),
            ),
        )

    async def aclose(self) -> None:
        self.closed = True


def _make_input(
    amount: int = 1000,
    currency: str = "USD",
    mode: Optional[CheckoutMode] = None,
    **extra,
) -> CreatePaymentInput:
    return CreatePaymentInput(
        money=Money(amount=amount, currency=currency),
        success_url="https://shop.example.com/success",
        cancel_url="https://shop.example.com/cancel",
        preferred_checkout_mode=mode,
        **extra,
    )


@pytest.fixture
def make_input():
    return _make_input


@pytest.fixture
def stub_adapter():
    """Factory: stub_adapter(provider, currencies=..., capabilities=..., limits=...)."""
    return StubAdapter


@pytest.fixture
def stripe_stub() -> StubAdapter:
    return StubAdapter(PaymentProvider.STRIPE, currencies=("USD", "EUR"))


@pytest.fixture
def razorpay_stub() -> StubAdapter:
    return StubAdapter(PaymentProvider.RAZORPAY, currencies=("INR", "USD"))


@pytest.fixture
def customer() -> CustomerInfo:
    return CustomerInfo(email="buyer@example.com", name="Buyer")
