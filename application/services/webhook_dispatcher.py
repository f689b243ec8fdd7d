"""
Webhook dispatch: route a raw inbound request to the right adapter, verify
its signature and normalize it into a WebhookEvent.

Verification always precedes parsing; an unverified body is never parsed.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

from application.dtos.payments import WebhookConfig, WebhookEvent, WebhookRequest, WebhookVerificationResult
from application.ports.payment_gateway import PaymentGatewayAdapter
from application.services.provider_registry import ProviderRegistry
from application.utils.webhooks import DEFAULT_TOLERANCE_SECONDS
from core.logging_config import get_logger
from domain.payment.enums import PaymentProvider
from domain.payment.exceptions import (
    InvalidProviderConfigError,
    ProviderNotFoundError,
    WebhookProviderNotConfiguredError,
    WebhookSignatureError,
    WebhookTimestampExpiredError,
)
from shared.codes import ErrorCode


logger = get_logger(__name__)


def _provider_key(provider: PaymentProvider | str) -> Optional[PaymentProvider]:
    try:
        return PaymentProvider(provider)
    except ValueError:
        return None


class WebhookDispatcher:
    def __init__(self, registry: ProviderRegistry, webhook_configs: Iterable[WebhookConfig] = ()) -> None:
        self.registry = registry
        self._configs: dict[PaymentProvider, WebhookConfig] = {}
        for config in webhook_configs or ():
            if config.provider in self._configs:
                raise InvalidProviderConfigError(config.provider, "duplicate webhook configuration")
            self._configs[config.provider] = config

    def get_config(self, provider: PaymentProvider | str) -> Optional[WebhookConfig]:
        key = _provider_key(provider)
        return self._configs.get(key) if key is not None else None

    def configured_providers(self) -> list[PaymentProvider]:
        return list(self._configs)

    def _resolve(self, provider: PaymentProvider | str) -> tuple[WebhookConfig, PaymentGatewayAdapter]:
        config = self.get_config(provider)
        if config is None:
            raise WebhookProviderNotConfiguredError(provider)
        adapter = self.registry.get(provider)
        if adapter is None:
            raise ProviderNotFoundError(provider)
        return config, adapter

    def verify(self, provider: PaymentProvider | str, request: WebhookRequest) -> WebhookVerificationResult:
        """Signature check only; reports a bad signature through the result."""
        config, adapter = self._resolve(provider)
        return adapter.verify_webhook_signature(request, config)

    def dispatch(self, provider: PaymentProvider | str, request: WebhookRequest) -> WebhookEvent:
        config, adapter = self._resolve(provider)

        result = adapter.verify_webhook_signature(request, config)
        if not result.is_valid:
            logger.warning(
                "webhook_verification_failed",
                provider=config.provider.value,
                error=result.error,
                error_code=result.error_code.value if result.error_code else None,
            )
            if result.error_code == ErrorCode.WEBHOOK_TIMESTAMP_EXPIRED:
                tolerance = config.timestamp_tolerance_seconds
                raise WebhookTimestampExpiredError(
                    config.provider,
                    result.timestamp or datetime.now(timezone.utc),
                    DEFAULT_TOLERANCE_SECONDS if tolerance is None else tolerance,
                )
            raise WebhookSignatureError(config.provider, result.error)

        event = adapter.parse_webhook_event(request)
        logger.info(
            "payment_webhook_parsed",
            provider=event.provider.value,
            event_type=event.event_type.value,
            event_id=event.provider_event_id,
        )
        return event
