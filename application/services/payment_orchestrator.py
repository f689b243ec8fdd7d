"""
Payment orchestrator: the single entry point applications talk to.

It owns the provider registry, the resolution engine, the capability
validator and the webhook dispatcher, and delegates the actual gateway work
to adapters implementing the PaymentGatewayAdapter port. Gateway adapters are
provided by infrastructure and injected from the composition root (API,
scripts), keeping dependencies one-way.

The orchestrator holds no per-payment state and never retries; transport
retries belong to adapters.
"""
from __future__ import annotations

from typing import Iterable, Optional, Union

from application.dtos.payments import (
    CreatePaymentInput,
    CreateRefundInput,
    HostedCheckoutResult,
    Payment,
    Refund,
    RefundList,
    ResolutionConfig,
    SdkCheckoutResult,
    WebhookConfig,
    WebhookEvent,
    WebhookRequest,
    WebhookVerificationResult,
)
from application.ports.payment_gateway import PaymentGatewayAdapter
from application.services.capability_validator import CapabilityValidator
from application.services.input_validation import validate_payment_input, validate_refund_input
from application.services.provider_registry import ProviderRegistry
from application.services.resolution import ResolutionEngine
from application.services.webhook_dispatcher import WebhookDispatcher
from core.logging_config import get_logger
from domain.payment.capability import AdapterCapabilities
from domain.payment.enums import PaymentProvider
from domain.payment.unipay_id import parse_unipay_id


logger = get_logger(__name__)


class PaymentOrchestrator:
    def __init__(
        self,
        adapters: Iterable[PaymentGatewayAdapter],
        *,
        resolution: Optional[ResolutionConfig] = None,
        webhook_configs: Iterable[WebhookConfig] = (),
    ) -> None:
        self.registry = ProviderRegistry(adapters)
        self.resolver = ResolutionEngine(self.registry, resolution or ResolutionConfig())
        self.validator = CapabilityValidator(self.registry)
        self.webhooks = WebhookDispatcher(self.registry, webhook_configs)

    # -- payments ---------------------------------------------------------

    async def create_payment(
        self, input: CreatePaymentInput, provider: Optional[PaymentProvider | str] = None
    ) -> Union[HostedCheckoutResult, SdkCheckoutResult]:
        validate_payment_input(input)
        chosen = self.resolver.resolve(input, provider)
        self.validator.validate(chosen, input)
        adapter = self.registry.require(chosen)
        logger.info(
            "payment_create_request",
            provider=chosen.value,
            order_id=input.order_id,
            amount=input.money.amount,
            currency=input.money.currency,
            checkout_mode=input.preferred_checkout_mode.value if input.preferred_checkout_mode else None,
            idempotency_key=input.idempotency_key,
        )
        result = await adapter.create_payment(input)
        logger.info(
            "payment_create_response",
            provider=chosen.value,
            unipay_id=result.unipay_id,
            status=result.status.value,
            checkout_mode=result.checkout_mode,
        )
        return result

    async def get_payment(self, unipay_id: str) -> Payment:
        parsed = parse_unipay_id(unipay_id)
        return await self.get_payment_by_provider_id(parsed.provider, parsed.provider_payment_id)

    async def get_payment_by_provider_id(self, provider: PaymentProvider | str, provider_payment_id: str) -> Payment:
        adapter = self.registry.require(provider)
        logger.info("payment_query_request", provider=adapter.provider.value, provider_payment_id=provider_payment_id)
        return await adapter.get_payment(provider_payment_id)

    # -- refunds ----------------------------------------------------------

    async def create_refund(self, unipay_id: str, input: Optional[CreateRefundInput] = None) -> Refund:
        validate_refund_input(input)
        parsed = parse_unipay_id(unipay_id)
        adapter = self.registry.require(parsed.provider)
        self.validator.validate_refund(parsed.provider, input.amount if input else None)
        logger.info(
            "payment_refund_request",
            provider=parsed.provider.value,
            provider_payment_id=parsed.provider_payment_id,
            amount=input.amount if input else None,
            idempotency_key=input.idempotency_key if input else None,
        )
        refund = await adapter.create_refund(parsed.provider_payment_id, input)
        logger.info(
            "payment_refund_response",
            provider=parsed.provider.value,
            provider_refund_id=refund.provider_refund_id,
            status=refund.status.value,
        )
        return refund

    async def get_refund(self, provider: PaymentProvider | str, provider_refund_id: str) -> Refund:
        adapter = self.registry.require(provider)
        logger.info("refund_query_request", provider=adapter.provider.value, provider_refund_id=provider_refund_id)
        return await adapter.get_refund(provider_refund_id)

    async def list_refunds(self, unipay_id: str) -> RefundList:
        parsed = parse_unipay_id(unipay_id)
        adapter = self.registry.require(parsed.provider)
        logger.info(
            "refund_list_request", provider=parsed.provider.value, provider_payment_id=parsed.provider_payment_id
        )
        return await adapter.list_refunds(parsed.provider_payment_id)

    # -- webhooks ---------------------------------------------------------

    def handle_webhook(self, provider: PaymentProvider | str, request: WebhookRequest) -> WebhookEvent:
        return self.webhooks.dispatch(provider, request)

    def verify_webhook_signature(
        self, provider: PaymentProvider | str, request: WebhookRequest
    ) -> WebhookVerificationResult:
        return self.webhooks.verify(provider, request)

    # -- introspection ----------------------------------------------------

    def get_provider_capabilities(self, provider: PaymentProvider | str) -> Optional[AdapterCapabilities]:
        return self.registry.capabilities(provider)

    def get_registered_providers(self) -> list[PaymentProvider]:
        return self.registry.list_providers()

    def is_provider_available(self, provider: PaymentProvider | str) -> bool:
        return provider in self.registry

    async def aclose(self) -> None:
        # Best-effort close underlying resources
        for adapter in self.registry.adapters():
            close = getattr(adapter, "aclose", None)
            if callable(close):
                await close()


def create_payment_client(
    adapters: Iterable[PaymentGatewayAdapter],
    *,
    resolution: Optional[ResolutionConfig] = None,
    webhook_configs: Iterable[WebhookConfig] = (),
) -> PaymentOrchestrator:
    """Build an orchestrator; configuration errors surface here, not on first use."""
    return PaymentOrchestrator(adapters, resolution=resolution, webhook_configs=webhook_configs)
