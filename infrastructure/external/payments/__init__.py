"""
Factory for payment gateway adapters and the orchestrator built from settings.
"""
from __future__ import annotations

from typing import Optional

from application.dtos.payments import AmountRoute, ResolutionConfig, WebhookConfig
from application.ports.payment_gateway import PaymentGatewayAdapter
from application.services.payment_orchestrator import PaymentOrchestrator, create_payment_client
from core.settings import PaymentSettings, payment_settings
from domain.payment.enums import PaymentProvider
from domain.payment.exceptions import InvalidProviderConfigError


def build_adapters(settings: Optional[PaymentSettings] = None) -> list[PaymentGatewayAdapter]:
    """Instantiate every enabled adapter, in declaration order (stripe, razorpay)."""
    settings = settings or payment_settings
    timeouts = settings.timeouts.model_dump()
    retry = {"max": settings.retry.max, "base": settings.retry.base_backoff}
    adapters: list[PaymentGatewayAdapter] = []

    if settings.stripe.enabled:
        if not settings.stripe.secret_key:
            raise InvalidProviderConfigError(PaymentProvider.STRIPE, "PAYMENT__STRIPE__SECRET_KEY not configured")
        from .stripe_client import StripeAdapter

        adapters.append(
            StripeAdapter(
                secret_key=settings.stripe.secret_key,
                api_version=settings.stripe.api_version,
                max_network_retries=settings.stripe.max_network_retries,
            )
        )

    if settings.razorpay.enabled:
        if not settings.razorpay.key_id or not settings.razorpay.key_secret:
            raise InvalidProviderConfigError(
                PaymentProvider.RAZORPAY, "PAYMENT__RAZORPAY__KEY_ID and KEY_SECRET are required"
            )
        from .razorpay_client import RazorpayAdapter

        adapters.append(
            RazorpayAdapter(
                key_id=settings.razorpay.key_id,
                key_secret=settings.razorpay.key_secret,
                base_url=settings.razorpay.base_url,
                timeouts=timeouts,
                retry=retry,
            )
        )
    return adapters


def build_webhook_configs(settings: Optional[PaymentSettings] = None) -> list[WebhookConfig]:
    settings = settings or payment_settings
    tolerance = settings.webhook.tolerance_seconds
    configs: list[WebhookConfig] = []
    if settings.stripe.enabled and settings.stripe.webhook_secret:
        configs.append(
            WebhookConfig(
                provider=PaymentProvider.STRIPE,
                signing_secret=settings.stripe.webhook_secret,
                timestamp_tolerance_seconds=tolerance,
            )
        )
    if settings.razorpay.enabled and settings.razorpay.webhook_secret:
        configs.append(
            WebhookConfig(
                provider=PaymentProvider.RAZORPAY,
                signing_secret=settings.razorpay.webhook_secret,
                timestamp_tolerance_seconds=tolerance,
            )
        )
    return configs


def build_resolution_config(settings: Optional[PaymentSettings] = None) -> ResolutionConfig:
    settings = settings or payment_settings
    resolution = settings.resolution
    try:
        return ResolutionConfig(
            strategy=resolution.strategy,
            default_provider=resolution.default_provider,
            amount_routes=[
                AmountRoute(currency=r.currency, max_amount=r.max_amount, provider=r.provider)
                for r in resolution.amount_routes
            ],
        )
    except ValueError as exc:
        raise InvalidProviderConfigError(resolution.default_provider, f"invalid resolution settings: {exc}", exc) from exc


def build_payment_client(settings: Optional[PaymentSettings] = None) -> PaymentOrchestrator:
    settings = settings or payment_settings
    return create_payment_client(
        build_adapters(settings),
        resolution=build_resolution_config(settings),
        webhook_configs=build_webhook_configs(settings),
    )
