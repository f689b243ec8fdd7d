"""
Provider resolution: pick the gateway that serves a payment request.

Strategies are plain functions taking the request and the registry; they
return ``None`` when nothing matches so the engine can apply the default
provider and raise a single NoProviderAvailableError. The engine is the only
holder of mutable state (the round-robin cursor).
"""
from __future__ import annotations

import threading
from typing import Optional

from application.dtos.payments import AmountRoute, CreatePaymentInput, ProviderResolver, ResolutionConfig
from application.services.provider_registry import ProviderRegistry
from core.logging_config import get_logger
from domain.payment.enums import PaymentProvider, ResolutionStrategy
from domain.payment.exceptions import (
    InvalidResolutionStrategyError,
    NoProviderAvailableError,
    ProviderNotFoundError,
)


logger = get_logger(__name__)


def _registered_default(registry: ProviderRegistry, default: Optional[PaymentProvider]) -> Optional[PaymentProvider]:
    if default is not None and default in registry:
        return PaymentProvider(default)
    return None


def resolve_first_available(
    registry: ProviderRegistry, default: Optional[PaymentProvider] = None
) -> Optional[PaymentProvider]:
    preferred = _registered_default(registry, default)
    if preferred is not None:
        return preferred
    providers = registry.list_providers()
    return providers[0] if providers else None


def resolve_round_robin(providers: list[PaymentProvider], cursor: int) -> Optional[PaymentProvider]:
    if not providers:
        return None
    return providers[cursor % len(providers)]


def resolve_by_currency(registry: ProviderRegistry, currency: str) -> Optional[PaymentProvider]:
    wanted = (currency or "").upper()
    for provider in registry.list_providers():
        caps = registry.capabilities(provider)
        if caps is not None and wanted in caps.supported_currencies:
            return provider
    return None


def resolve_by_amount(
    registry: ProviderRegistry, routes: list[AmountRoute], amount: int, currency: str
) -> Optional[PaymentProvider]:
    """First route in declaration order wins; unregistered route targets are skipped."""
    wanted = (currency or "").upper()
    for route in routes:
        if route.currency.upper() != wanted:
            continue
        if amount > route.max_amount:
            continue
        if route.provider in registry:
            return route.provider
    return None


def resolve_custom(
    registry: ProviderRegistry, resolver: ProviderResolver, input: CreatePaymentInput
) -> Optional[PaymentProvider]:
    chosen = resolver(input, registry.list_providers())
    if chosen is None:
        return None
    if chosen not in registry:
        raise ProviderNotFoundError(chosen)
    return PaymentProvider(chosen)


class ResolutionEngine:
    def __init__(self, registry: ProviderRegistry, config: Optional[ResolutionConfig] = None) -> None:
        config = config or ResolutionConfig()
        try:
            strategy = ResolutionStrategy(config.strategy)
        except ValueError as exc:
            raise InvalidResolutionStrategyError(f"Unknown strategy '{config.strategy}'") from exc
        if strategy is ResolutionStrategy.CUSTOM and config.custom_resolver is None:
            raise InvalidResolutionStrategyError("Custom strategy requires a custom_resolver function")
        if strategy is ResolutionStrategy.BY_AMOUNT and not config.amount_routes:
            raise InvalidResolutionStrategyError("by-amount strategy requires at least one amount route")

        self.registry = registry
        self.strategy = strategy
        self.default_provider = config.default_provider
        self.custom_resolver = config.custom_resolver
        self.amount_routes = list(config.amount_routes)
        self._cursor = 0
        self._lock = threading.Lock()

    def _next_round_robin(self) -> Optional[PaymentProvider]:
        providers = self.registry.list_providers()
        with self._lock:
            provider = resolve_round_robin(providers, self._cursor)
            self._cursor += 1
        return provider

    def _select(self, input: CreatePaymentInput) -> Optional[PaymentProvider]:
        strategy = self.strategy
        if strategy is ResolutionStrategy.FIRST_AVAILABLE:
            return resolve_first_available(self.registry, self.default_provider)
        if strategy is ResolutionStrategy.ROUND_ROBIN:
            return self._next_round_robin()
        if strategy is ResolutionStrategy.BY_CURRENCY:
            return resolve_by_currency(self.registry, input.money.currency) or _registered_default(
                self.registry, self.default_provider
            )
        if strategy is ResolutionStrategy.BY_AMOUNT:
            return resolve_by_amount(
                self.registry, self.amount_routes, input.money.amount, input.money.currency
            ) or _registered_default(self.registry, self.default_provider)
        # custom
        chosen = resolve_custom(self.registry, self.custom_resolver, input)
        if chosen is not None:
            return chosen
        return resolve_first_available(self.registry, self.default_provider)

    def resolve(
        self, input: CreatePaymentInput, explicit_provider: Optional[PaymentProvider | str] = None
    ) -> PaymentProvider:
        """Return the provider for ``input``.

        An explicit provider is returned as given; whether it is registered and
        capable is left to the capability validator.
        """
        if explicit_provider is not None:
            try:
                provider = PaymentProvider(explicit_provider)
            except ValueError as exc:
                raise ProviderNotFoundError(explicit_provider) from exc
            logger.debug("provider_resolved", strategy="explicit", provider=provider.value)
            return provider

        provider = self._select(input)
        if provider is None:
            raise NoProviderAvailableError(f"No provider available for currency '{input.money.currency}'")
        logger.debug("provider_resolved", strategy=self.strategy.value, provider=provider.value)
        return provider
