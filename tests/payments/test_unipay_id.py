import pytest

from domain.payment.enums import PaymentProvider
from domain.payment.exceptions import InvalidUnipayIdError, MissingRequiredFieldError, ValidationError
from domain.payment.unipay_id import (
    create_unipay_id,
    get_provider_from_unipay_id,
    is_valid_unipay_id,
    parse_unipay_id,
)


def test_create_and_parse():
    unipay_id = create_unipay_id(PaymentProvider.STRIPE, "cs_test_abc123")
    assert unipay_id == "stripe:cs_test_abc123"
    parsed = parse_unipay_id(unipay_id)
    assert parsed.provider is PaymentProvider.STRIPE
    assert parsed.provider_payment_id == "cs_test_abc123"


def test_create_accepts_plain_tag():
    assert create_unipay_id("razorpay", "order_ABC123") == "razorpay:order_ABC123"


@pytest.mark.parametrize("value", ["", "   "])
def test_create_rejects_blank_provider_id(value):
    with pytest.raises(MissingRequiredFieldError) as exc_info:
        create_unipay_id(PaymentProvider.STRIPE, value)
    assert isinstance(exc_info.value, ValidationError)
    assert exc_info.value.field == "provider_payment_id"


def test_parse_splits_on_first_separator_only():
    parsed = parse_unipay_id("razorpay:pay:with:colons")
    assert parsed.provider is PaymentProvider.RAZORPAY
    assert parsed.provider_payment_id == "pay:with:colons"


@pytest.mark.parametrize(
    "value",
    ["", "stripe", "stripe:", "stripe:   ", "unknown:pay_1", "STRIPE:pay_1", ":pay_1"],
)
def test_parse_rejects_malformed(value):
    with pytest.raises(InvalidUnipayIdError) as exc_info:
        parse_unipay_id(value)
    assert exc_info.value.code.value == "INVALID_UNIPAY_ID"


def test_parse_rejects_non_string():
    with pytest.raises(InvalidUnipayIdError):
        parse_unipay_id(None)  # type: ignore[arg-type]


def test_get_provider_never_raises():
    assert get_provider_from_unipay_id("razorpay:order_1") is PaymentProvider.RAZORPAY
    assert get_provider_from_unipay_id("nope:order_1") is None
    assert get_provider_from_unipay_id("no-separator") is None
    assert get_provider_from_unipay_id("stripe:") is None
    assert get_provider_from_unipay_id(None) is None  # type: ignore[arg-type]


def test_is_valid_unipay_id():
    assert is_valid_unipay_id("paypal:PAY-1")
    assert not is_valid_unipay_id("paypal")
