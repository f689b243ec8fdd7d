import pytest

from application.services.provider_registry import ProviderRegistry
from domain.payment.enums import PaymentProvider
from domain.payment.exceptions import (
    DuplicateProviderError,
    InvalidProviderConfigError,
    MissingProviderError,
    ProviderNotFoundError,
)


def test_registry_keeps_registration_order(stripe_stub, razorpay_stub):
    registry = ProviderRegistry([razorpay_stub, stripe_stub])
    assert registry.list_providers() == [PaymentProvider.RAZORPAY, PaymentProvider.STRIPE]
    assert len(registry) == 2
    assert PaymentProvider.STRIPE in registry
    assert "razorpay" in registry
    assert PaymentProvider.PAYPAL not in registry


def test_empty_registry_is_rejected():
    with pytest.raises(MissingProviderError):
        ProviderRegistry([])


def test_duplicate_provider_is_rejected(stub_adapter):
    with pytest.raises(DuplicateProviderError) as exc_info:
        ProviderRegistry([stub_adapter(PaymentProvider.STRIPE), stub_adapter(PaymentProvider.STRIPE)])
    assert exc_info.value.provider == "stripe"


def test_get_and_require(stripe_stub):
    registry = ProviderRegistry([stripe_stub])
    assert registry.get(PaymentProvider.STRIPE) is stripe_stub
    assert registry.get("paypal") is None
    assert registry.get("not-a-provider") is None
    with pytest.raises(ProviderNotFoundError):
        registry.require(PaymentProvider.PAYPAL)


def test_capabilities_lookup(stripe_stub):
    registry = ProviderRegistry([stripe_stub])
    assert registry.capabilities(PaymentProvider.STRIPE) is stripe_stub.capabilities
    assert registry.capabilities(PaymentProvider.RAZORPAY) is None


def test_registry_is_immutable_after_construction(stripe_stub, razorpay_stub):
    registry = ProviderRegistry([stripe_stub])
    with pytest.raises(InvalidProviderConfigError):
        registry.register(razorpay_stub)
    assert registry.list_providers() == [PaymentProvider.STRIPE]
