import pytest

from application.services.capability_validator import CapabilityValidator
from application.services.provider_registry import ProviderRegistry
from domain.payment.capability import AdapterCapabilities, AdapterLimits, has_capability, supports_checkout_mode, supports_currency
from domain.payment.enums import AdapterCapability, CheckoutMode, PaymentProvider
from domain.payment.exceptions import (
    InvalidAmountError,
    InvalidMetadataError,
    PartialRefundNotSupportedError,
    ProviderNotFoundError,
    UnsupportedCheckoutModeError,
    UnsupportedCurrencyError,
)


def test_capability_helpers():
    caps = AdapterCapabilities(
        provider=PaymentProvider.RAZORPAY,
        capabilities=frozenset({AdapterCapability.SDK_CHECKOUT, AdapterCapability.UPI}),
        supported_currencies=["inr", "USD"],
    )
    assert caps.supported_currencies == ("INR", "USD")
    assert supports_currency(caps, "inr")
    assert not supports_currency(caps, "EUR")
    assert has_capability(caps, AdapterCapability.UPI)
    assert supports_checkout_mode(caps, CheckoutMode.SDK)
    assert not supports_checkout_mode(caps, CheckoutMode.HOSTED)


@pytest.fixture
def validator(stub_adapter):
    hosted_only = stub_adapter(
        PaymentProvider.PAYU,
        currencies=("INR",),
        capabilities={AdapterCapability.HOSTED_CHECKOUT, AdapterCapability.FULL_REFUND},
        limits=AdapterLimits(min_amount=100, max_amount=10_000, max_metadata_keys=2, max_metadata_value_length=5),
    )
    return CapabilityValidator(ProviderRegistry([hosted_only]))


def test_valid_request_passes(validator, make_input):
    validator.validate(PaymentProvider.PAYU, make_input(amount=500, currency="inr", mode=CheckoutMode.HOSTED))


def test_unregistered_provider(validator, make_input):
    with pytest.raises(ProviderNotFoundError):
        validator.validate(PaymentProvider.STRIPE, make_input(currency="INR"))


def test_unsupported_currency(validator, make_input):
    with pytest.raises(UnsupportedCurrencyError) as exc_info:
        validator.validate(PaymentProvider.PAYU, make_input(currency="USD"))
    assert exc_info.value.currency == "USD"


def test_unsupported_checkout_mode(validator, make_input):
    with pytest.raises(UnsupportedCheckoutModeError) as exc_info:
        validator.validate(PaymentProvider.PAYU, make_input(currency="INR", mode=CheckoutMode.SDK))
    assert exc_info.value.checkout_mode == "sdk"


def test_currency_checked_before_checkout_mode(validator, make_input):
    with pytest.raises(UnsupportedCurrencyError):
        validator.validate(PaymentProvider.PAYU, make_input(currency="USD", mode=CheckoutMode.SDK))


@pytest.mark.parametrize("amount", [99, 10_001])
def test_amount_outside_limits(validator, make_input, amount):
    with pytest.raises(InvalidAmountError):
        validator.validate(PaymentProvider.PAYU, make_input(amount=amount, currency="INR"))


def test_metadata_limits(validator, make_input):
    with pytest.raises(InvalidMetadataError):
        validator.validate(PaymentProvider.PAYU, make_input(currency="INR", metadata={"a": "1", "b": "2", "c": "3"}))
    with pytest.raises(InvalidMetadataError):
        validator.validate(PaymentProvider.PAYU, make_input(currency="INR", metadata={"a": "toolong"}))


def test_partial_refund_gate(validator):
    validator.validate_refund(PaymentProvider.PAYU, None)
    with pytest.raises(PartialRefundNotSupportedError):
        validator.validate_refund(PaymentProvider.PAYU, 100)
