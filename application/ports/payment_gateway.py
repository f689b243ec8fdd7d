"""
Payment gateway port (application/ports) exposing a replaceable protocol.

The orchestrator depends only on this Protocol; infrastructure implements
one adapter per provider. The core never inspects adapter internals and only
calls these methods after resolution and validation succeed.
"""
from __future__ import annotations

from typing import Optional, Protocol, Union, runtime_checkable

from application.dtos.payments import (
    CreatePaymentInput,
    CreateRefundInput,
    HostedCheckoutResult,
    Payment,
    Refund,
    RefundList,
    SdkCheckoutResult,
    WebhookConfig,
    WebhookEvent,
    WebhookRequest,
    WebhookVerificationResult,
)
from domain.payment.capability import AdapterCapabilities
from domain.payment.enums import PaymentProvider


@runtime_checkable
class PaymentGatewayAdapter(Protocol):
    """Gateway protocol for third-party payment providers.

    Network operations are async; webhook verification and parsing are pure
    and synchronous. ``verify_webhook_signature`` must never raise for a bad
    signature, it reports through the result object instead.
    """

    provider: PaymentProvider
    capabilities: AdapterCapabilities

    async def create_payment(
        self, input: CreatePaymentInput
    ) -> Union[HostedCheckoutResult, SdkCheckoutResult]: ...

    async def get_payment(self, provider_payment_id: str) -> Payment: ...

    async def create_refund(
        self, provider_payment_id: str, input: Optional[CreateRefundInput] = None
    ) -> Refund: ...

    async def get_refund(self, provider_refund_id: str) -> Refund: ...

    async def list_refunds(self, provider_payment_id: str) -> RefundList: ...

    def verify_webhook_signature(
        self, request: WebhookRequest, config: WebhookConfig
    ) -> WebhookVerificationResult: ...

    def parse_webhook_event(self, request: WebhookRequest) -> WebhookEvent: ...
