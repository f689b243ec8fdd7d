import math
import threading
from collections import Counter

import pytest

from application.dtos.payments import AmountRoute, ResolutionConfig
from application.services.provider_registry import ProviderRegistry
from application.services.resolution import ResolutionEngine
from domain.payment.enums import PaymentProvider, ResolutionStrategy
from domain.payment.exceptions import (
    InvalidResolutionStrategyError,
    NoProviderAvailableError,
    ProviderNotFoundError,
)


@pytest.fixture
def registry(stripe_stub, razorpay_stub):
    # stripe: USD/EUR, razorpay: INR/USD
    return ProviderRegistry([stripe_stub, razorpay_stub])


def test_first_available_uses_registration_order(registry, make_input):
    engine = ResolutionEngine(registry)
    assert engine.resolve(make_input()) is PaymentProvider.STRIPE


def test_first_available_prefers_registered_default(registry, make_input):
    engine = ResolutionEngine(registry, ResolutionConfig(default_provider=PaymentProvider.RAZORPAY))
    assert engine.resolve(make_input()) is PaymentProvider.RAZORPAY


def test_first_available_ignores_unregistered_default(registry, make_input):
    engine = ResolutionEngine(registry, ResolutionConfig(default_provider=PaymentProvider.PAYPAL))
    assert engine.resolve(make_input()) is PaymentProvider.STRIPE


def test_explicit_provider_wins_verbatim(registry, make_input):
    engine = ResolutionEngine(registry, ResolutionConfig(strategy="by-currency"))
    # returned even though it is not registered; the capability validator rejects it later
    assert engine.resolve(make_input(currency="INR"), PaymentProvider.PAYPAL) is PaymentProvider.PAYPAL
    assert engine.resolve(make_input(currency="INR"), "stripe") is PaymentProvider.STRIPE


def test_round_robin_cycles(registry, make_input):
    engine = ResolutionEngine(registry, ResolutionConfig(strategy=ResolutionStrategy.ROUND_ROBIN))
    picks = [engine.resolve(make_input()) for _ in range(4)]
    assert picks == [
        PaymentProvider.STRIPE,
        PaymentProvider.RAZORPAY,
        PaymentProvider.STRIPE,
        PaymentProvider.RAZORPAY,
    ]


def test_round_robin_is_fair_under_concurrency(registry, make_input):
    engine = ResolutionEngine(registry, ResolutionConfig(strategy="round-robin"))
    payment = make_input()
    picks: list[PaymentProvider] = []
    lock = threading.Lock()

    def worker():
        for _ in range(50):
            provider = engine.resolve(payment)
            with lock:
                picks.append(provider)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    counts = Counter(picks)
    assert counts[PaymentProvider.STRIPE] == 200
    assert counts[PaymentProvider.RAZORPAY] == 200


def test_by_currency_picks_first_supporting_provider(registry, make_input):
    engine = ResolutionEngine(registry, ResolutionConfig(strategy="by-currency"))
    assert engine.resolve(make_input(currency="INR")) is PaymentProvider.RAZORPAY
    assert engine.resolve(make_input(currency="eur")) is PaymentProvider.STRIPE
    # both support USD: registration order decides
    assert engine.resolve(make_input(currency="USD")) is PaymentProvider.STRIPE


def test_by_currency_falls_back_to_default(registry, make_input):
    engine = ResolutionEngine(
        registry, ResolutionConfig(strategy="by-currency", default_provider=PaymentProvider.RAZORPAY)
    )
    assert engine.resolve(make_input(currency="JPY")) is PaymentProvider.RAZORPAY


def test_by_currency_without_match_or_default_fails(registry, make_input):
    engine = ResolutionEngine(registry, ResolutionConfig(strategy="by-currency"))
    with pytest.raises(NoProviderAvailableError) as exc_info:
        engine.resolve(make_input(currency="JPY"))
    assert "JPY" in exc_info.value.message


def test_by_amount_routes_first_match_wins(registry, make_input):
    routes = [
        AmountRoute(currency="inr", max_amount=10_000, provider=PaymentProvider.RAZORPAY),
        AmountRoute(currency="INR", max_amount=math.inf, provider=PaymentProvider.STRIPE),
        AmountRoute(currency="INR", max_amount=5_000, provider=PaymentProvider.STRIPE),
    ]
    engine = ResolutionEngine(registry, ResolutionConfig(strategy="by-amount", amount_routes=routes))
    assert engine.resolve(make_input(amount=10_000, currency="INR")) is PaymentProvider.RAZORPAY
    assert engine.resolve(make_input(amount=10_001, currency="INR")) is PaymentProvider.STRIPE


def test_by_amount_skips_unregistered_route_provider(registry, make_input):
    routes = [
        AmountRoute(currency="USD", max_amount=1_000_000, provider=PaymentProvider.PAYPAL),
        AmountRoute(currency="USD", provider=PaymentProvider.RAZORPAY),
    ]
    engine = ResolutionEngine(registry, ResolutionConfig(strategy="by-amount", amount_routes=routes))
    assert engine.resolve(make_input(amount=500)) is PaymentProvider.RAZORPAY


def test_by_amount_without_match_uses_default_or_fails(registry, make_input):
    routes = [AmountRoute(currency="INR", max_amount=100, provider=PaymentProvider.RAZORPAY)]
    engine = ResolutionEngine(registry, ResolutionConfig(strategy="by-amount", amount_routes=routes))
    with pytest.raises(NoProviderAvailableError):
        engine.resolve(make_input(amount=500, currency="INR"))

    engine = ResolutionEngine(
        registry,
        ResolutionConfig(strategy="by-amount", amount_routes=routes, default_provider=PaymentProvider.STRIPE),
    )
    assert engine.resolve(make_input(amount=500, currency="INR")) is PaymentProvider.STRIPE


def test_custom_resolver_receives_registered_providers(registry, make_input):
    seen = {}

    def resolver(input, providers):
        seen["providers"] = providers
        return PaymentProvider.RAZORPAY if input.money.currency == "INR" else None

    engine = ResolutionEngine(registry, ResolutionConfig(strategy="custom", custom_resolver=resolver))
    assert engine.resolve(make_input(currency="INR")) is PaymentProvider.RAZORPAY
    assert seen["providers"] == [PaymentProvider.STRIPE, PaymentProvider.RAZORPAY]
    # None falls through to first-available
    assert engine.resolve(make_input(currency="USD")) is PaymentProvider.STRIPE


def test_custom_resolver_none_uses_default(registry, make_input):
    engine = ResolutionEngine(
        registry,
        ResolutionConfig(
            strategy="custom",
            custom_resolver=lambda input, providers: None,
            default_provider=PaymentProvider.RAZORPAY,
        ),
    )
    assert engine.resolve(make_input()) is PaymentProvider.RAZORPAY


def test_custom_resolver_returning_unregistered_provider_fails(registry, make_input):
    engine = ResolutionEngine(
        registry,
        ResolutionConfig(strategy="custom", custom_resolver=lambda input, providers: PaymentProvider.PAYU),
    )
    with pytest.raises(ProviderNotFoundError):
        engine.resolve(make_input())


@pytest.mark.parametrize(
    "config",
    [
        ResolutionConfig(strategy="fastest"),
        ResolutionConfig(strategy="custom"),
        ResolutionConfig(strategy="by-amount"),
    ],
)
def test_invalid_configuration_fails_at_construction(registry, config):
    with pytest.raises(InvalidResolutionStrategyError):
        ResolutionEngine(registry, config)
