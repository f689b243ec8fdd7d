from datetime import datetime, timezone

import pytest

from domain.common.exceptions import UnipayError
from domain.payment.enums import PaymentProvider
from domain.payment.exceptions import (
    ConfigurationError,
    DuplicateProviderError,
    InvalidAmountError,
    NoProviderAvailableError,
    PartialRefundNotSupportedError,
    PaymentCreationError,
    PaymentError,
    ProviderNotFoundError,
    ProviderResolutionError,
    RefundError,
    RefundExceedsPaymentError,
    UnsupportedCurrencyError,
    ValidationError,
    WebhookError,
    WebhookSignatureError,
    WebhookTimestampExpiredError,
)
from shared.codes import ErrorCode


@pytest.mark.parametrize(
    "error, category, code",
    [
        (DuplicateProviderError(PaymentProvider.STRIPE), ConfigurationError, ErrorCode.DUPLICATE_PROVIDER),
        (NoProviderAvailableError(), ProviderResolutionError, ErrorCode.NO_PROVIDER_AVAILABLE),
        (ProviderNotFoundError("paypal"), ProviderResolutionError, ErrorCode.PROVIDER_NOT_FOUND),
        (PaymentCreationError("boom"), PaymentError, ErrorCode.PAYMENT_CREATION_FAILED),
        (PartialRefundNotSupportedError(PaymentProvider.PAYU), RefundError, ErrorCode.PARTIAL_REFUND_NOT_SUPPORTED),
        (WebhookSignatureError(PaymentProvider.STRIPE), WebhookError, ErrorCode.WEBHOOK_SIGNATURE_INVALID),
        (InvalidAmountError(-1, "must be greater than zero"), ValidationError, ErrorCode.INVALID_AMOUNT),
    ],
)
def test_errors_belong_to_their_category(error, category, code):
    assert isinstance(error, category)
    assert isinstance(error, UnipayError)
    assert error.code is code


def test_provider_is_normalized_to_tag():
    error = UnsupportedCurrencyError(PaymentProvider.STRIPE, "XYZ")
    assert error.provider == "stripe"
    assert error.currency == "XYZ"
    assert "XYZ" in error.message


def test_cause_is_chained():
    cause = RuntimeError("socket closed")
    error = PaymentCreationError("gateway down", provider=PaymentProvider.RAZORPAY, provider_code="E1", cause=cause)
    assert error.__cause__ is cause
    assert error.provider_code == "E1"
    data = error.to_dict()
    assert data["name"] == "PaymentCreationError"
    assert data["code"] == "PAYMENT_CREATION_FAILED"
    assert data["provider"] == "razorpay"
    assert data["cause"] == "socket closed"
    assert data["provider_code"] == "E1"


def test_timestamp_expired_carries_timestamp_and_tolerance():
    ts = datetime(2025, 1, 1, tzinfo=timezone.utc)
    error = WebhookTimestampExpiredError(PaymentProvider.STRIPE, ts, 300)
    assert error.timestamp == ts
    assert error.tolerance_seconds == 300
    assert error.to_dict()["tolerance_seconds"] == 300


def test_refund_exceeds_payment_details():
    error = RefundExceedsPaymentError(1500, 1000, PaymentProvider.STRIPE)
    assert error.requested_amount == 1500
    assert error.available_amount == 1000
    assert error.details["available_amount"] == 1000


def test_validation_error_field():
    assert InvalidAmountError(0, "zero").field == "money.amount"
