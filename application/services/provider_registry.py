"""
Provider registry: the configured adapters keyed by provider tag.

Immutable after construction; safe to share read-only across concurrent
callers.
"""
from __future__ import annotations

from typing import Iterable, Iterator, Optional

from application.ports.payment_gateway import PaymentGatewayAdapter
from core.logging_config import get_logger
from domain.payment.capability import AdapterCapabilities
from domain.payment.enums import PaymentProvider
from domain.payment.exceptions import (
    DuplicateProviderError,
    InvalidProviderConfigError,
    MissingProviderError,
    ProviderNotFoundError,
)


logger = get_logger(__name__)


class ProviderRegistry:
    def __init__(self, adapters: Iterable[PaymentGatewayAdapter]) -> None:
        self._adapters: dict[PaymentProvider, PaymentGatewayAdapter] = {}
        self._sealed = False
        for adapter in adapters or ():
            self.register(adapter)
        if not self._adapters:
            raise MissingProviderError()
        self._sealed = True
        logger.info("provider_registry_ready", providers=[p.value for p in self._adapters])

    def register(self, adapter: PaymentGatewayAdapter) -> None:
        provider = PaymentProvider(adapter.provider)
        if self._sealed:
            raise InvalidProviderConfigError(provider, "registry is immutable after construction")
        if provider in self._adapters:
            raise DuplicateProviderError(provider)
        self._adapters[provider] = adapter

    def get(self, provider: PaymentProvider | str) -> Optional[PaymentGatewayAdapter]:
        try:
            return self._adapters.get(PaymentProvider(provider))
        except ValueError:
            return None

    def require(self, provider: PaymentProvider | str) -> PaymentGatewayAdapter:
        adapter = self.get(provider)
        if adapter is None:
            raise ProviderNotFoundError(provider)
        return adapter

    def capabilities(self, provider: PaymentProvider | str) -> Optional[AdapterCapabilities]:
        adapter = self.get(provider)
        return adapter.capabilities if adapter is not None else None

    def list_providers(self) -> list[PaymentProvider]:
        """Registered tags in registration order."""
        return list(self._adapters)

    def adapters(self) -> list[PaymentGatewayAdapter]:
        return list(self._adapters.values())

    def __contains__(self, provider: object) -> bool:
        return self.get(provider) is not None  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._adapters)

    def __iter__(self) -> Iterator[PaymentProvider]:
        return iter(self._adapters)
