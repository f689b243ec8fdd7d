"""
Closed error taxonomy for payment orchestration.

Categories (ConfigurationError, ProviderResolutionError, PaymentError,
RefundError, WebhookError, ValidationError) exist so callers can catch a
whole family; the concrete leaves are what the code actually raises and are
never subclassed further.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from domain.common.exceptions import UnipayError
from shared.codes import ErrorCode


# ---------------------------------------------------------------------------
# Configuration (fatal at construction time, never retried)
# ---------------------------------------------------------------------------


class ConfigurationError(UnipayError):
    pass


class InvalidProviderConfigError(ConfigurationError):
    def __init__(self, provider: Any, reason: str, cause: Optional[BaseException] = None):
        super().__init__(
            ErrorCode.INVALID_PROVIDER_CONFIG,
            f"Invalid configuration for {getattr(provider, 'value', provider)}: {reason}",
            provider=provider,
            cause=cause,
        )


class MissingProviderError(ConfigurationError):
    def __init__(self):
        super().__init__(ErrorCode.MISSING_PROVIDER, "At least one adapter must be provided")


class DuplicateProviderError(ConfigurationError):
    def __init__(self, provider: Any):
        name = getattr(provider, "value", provider)
        super().__init__(
            ErrorCode.DUPLICATE_PROVIDER,
            f"Duplicate adapter for provider '{name}'. Each provider can only have one adapter.",
            provider=provider,
        )


class InvalidResolutionStrategyError(ConfigurationError):
    def __init__(self, reason: str):
        super().__init__(ErrorCode.INVALID_RESOLUTION_STRATEGY, reason)


# ---------------------------------------------------------------------------
# Provider resolution
# ---------------------------------------------------------------------------


class ProviderResolutionError(UnipayError):
    pass


class NoProviderAvailableError(ProviderResolutionError):
    def __init__(self, reason: Optional[str] = None):
        super().__init__(
            ErrorCode.NO_PROVIDER_AVAILABLE,
            reason or "No payment provider available for this request",
        )


class ProviderNotFoundError(ProviderResolutionError):
    def __init__(self, provider: Any):
        super().__init__(
            ErrorCode.PROVIDER_NOT_FOUND,
            f"Provider '{getattr(provider, 'value', provider)}' is not registered",
            provider=provider,
        )


class UnsupportedCapabilityError(ProviderResolutionError):
    def __init__(self, provider: Any, capability: Any):
        self.capability = getattr(capability, "value", capability)
        super().__init__(
            ErrorCode.UNSUPPORTED_CAPABILITY,
            f"Provider '{getattr(provider, 'value', provider)}' does not support '{self.capability}'",
            provider=provider,
            details={"capability": self.capability},
        )


class UnsupportedCurrencyError(ProviderResolutionError):
    def __init__(self, provider: Any, currency: str):
        self.currency = currency
        super().__init__(
            ErrorCode.UNSUPPORTED_CURRENCY,
            f"Provider '{getattr(provider, 'value', provider)}' does not support currency '{currency}'",
            provider=provider,
            details={"currency": currency},
        )


class UnsupportedCheckoutModeError(ProviderResolutionError):
    def __init__(self, provider: Any, checkout_mode: Any):
        self.checkout_mode = getattr(checkout_mode, "value", checkout_mode)
        super().__init__(
            ErrorCode.UNSUPPORTED_CHECKOUT_MODE,
            f"Provider '{getattr(provider, 'value', provider)}' does not support checkout mode '{self.checkout_mode}'",
            provider=provider,
            details={"checkout_mode": self.checkout_mode},
        )


# ---------------------------------------------------------------------------
# Payment
# ---------------------------------------------------------------------------


class PaymentError(UnipayError):
    def __init__(
        self,
        code: ErrorCode,
        message: str,
        *,
        provider: Any = None,
        provider_code: Optional[str] = None,
        provider_payment_id: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        self.provider_code = provider_code
        self.provider_payment_id = provider_payment_id
        super().__init__(
            code,
            message,
            provider=provider,
            cause=cause,
            details={"provider_code": provider_code, "provider_payment_id": provider_payment_id},
        )


class PaymentCreationError(PaymentError):
    def __init__(
        self,
        message: str,
        *,
        provider: Any = None,
        provider_code: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(
            ErrorCode.PAYMENT_CREATION_FAILED,
            message,
            provider=provider,
            provider_code=provider_code,
            cause=cause,
        )


class PaymentNotFoundError(PaymentError):
    def __init__(self, payment_id: str, provider: Any = None):
        super().__init__(
            ErrorCode.PAYMENT_NOT_FOUND,
            f"Payment '{payment_id}' not found",
            provider=provider,
            provider_payment_id=payment_id,
        )


class PaymentRetrievalError(PaymentError):
    def __init__(
        self,
        payment_id: str,
        reason: str,
        *,
        provider: Any = None,
        provider_code: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(
            ErrorCode.PAYMENT_RETRIEVAL_FAILED,
            f"Failed to retrieve payment '{payment_id}': {reason}",
            provider=provider,
            provider_code=provider_code,
            provider_payment_id=payment_id,
            cause=cause,
        )


class PaymentAlreadyCapturedError(PaymentError):
    def __init__(self, payment_id: str, provider: Any = None):
        super().__init__(
            ErrorCode.PAYMENT_ALREADY_CAPTURED,
            f"Payment '{payment_id}' has already been captured",
            provider=provider,
            provider_payment_id=payment_id,
        )


class PaymentExpiredError(PaymentError):
    def __init__(self, payment_id: str, provider: Any = None):
        super().__init__(
            ErrorCode.PAYMENT_EXPIRED,
            f"Payment '{payment_id}' has expired",
            provider=provider,
            provider_payment_id=payment_id,
        )


class PaymentCancelledError(PaymentError):
    def __init__(self, payment_id: str, provider: Any = None):
        super().__init__(
            ErrorCode.PAYMENT_CANCELLED,
            f"Payment '{payment_id}' was cancelled",
            provider=provider,
            provider_payment_id=payment_id,
        )


# ---------------------------------------------------------------------------
# Refund
# ---------------------------------------------------------------------------


class RefundError(UnipayError):
    def __init__(
        self,
        code: ErrorCode,
        message: str,
        *,
        provider: Any = None,
        provider_code: Optional[str] = None,
        provider_refund_id: Optional[str] = None,
        provider_payment_id: Optional[str] = None,
        cause: Optional[BaseException] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.provider_code = provider_code
        self.provider_refund_id = provider_refund_id
        self.provider_payment_id = provider_payment_id
        full_details = {
            "provider_code": provider_code,
            "provider_refund_id": provider_refund_id,
            "provider_payment_id": provider_payment_id,
        }
        if details:
            full_details.update(details)
        super().__init__(code, message, provider=provider, cause=cause, details=full_details)


class RefundCreationError(RefundError):
    def __init__(
        self,
        message: str,
        *,
        provider: Any = None,
        provider_code: Optional[str] = None,
        provider_payment_id: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(
            ErrorCode.REFUND_CREATION_FAILED,
            message,
            provider=provider,
            provider_code=provider_code,
            provider_payment_id=provider_payment_id,
            cause=cause,
        )


class RefundNotFoundError(RefundError):
    def __init__(self, refund_id: str, provider: Any = None):
        super().__init__(
            ErrorCode.REFUND_NOT_FOUND,
            f"Refund '{refund_id}' not found",
            provider=provider,
            provider_refund_id=refund_id,
        )


class RefundRetrievalError(RefundError):
    def __init__(
        self,
        refund_id: str,
        reason: str,
        *,
        provider: Any = None,
        provider_code: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(
            ErrorCode.REFUND_RETRIEVAL_FAILED,
            f"Failed to retrieve refund '{refund_id}': {reason}",
            provider=provider,
            provider_code=provider_code,
            provider_refund_id=refund_id,
            cause=cause,
        )


class PartialRefundNotSupportedError(RefundError):
    def __init__(self, provider: Any):
        super().__init__(
            ErrorCode.PARTIAL_REFUND_NOT_SUPPORTED,
            f"Provider '{getattr(provider, 'value', provider)}' does not support partial refunds",
            provider=provider,
        )


class RefundExceedsPaymentError(RefundError):
    def __init__(self, requested_amount: int, available_amount: int, provider: Any = None):
        self.requested_amount = requested_amount
        self.available_amount = available_amount
        super().__init__(
            ErrorCode.REFUND_EXCEEDS_PAYMENT,
            f"Refund amount {requested_amount} exceeds available amount {available_amount}",
            provider=provider,
            details={"requested_amount": requested_amount, "available_amount": available_amount},
        )


class PaymentNotRefundableError(RefundError):
    def __init__(self, payment_id: str, reason: str, provider: Any = None):
        super().__init__(
            ErrorCode.PAYMENT_NOT_REFUNDABLE,
            f"Payment '{payment_id}' cannot be refunded: {reason}",
            provider=provider,
            provider_payment_id=payment_id,
        )


class RefundAlreadyProcessedError(RefundError):
    def __init__(self, refund_id: str, provider: Any = None):
        super().__init__(
            ErrorCode.REFUND_ALREADY_PROCESSED,
            f"Refund '{refund_id}' has already been processed",
            provider=provider,
            provider_refund_id=refund_id,
        )


# ---------------------------------------------------------------------------
# Webhook
# ---------------------------------------------------------------------------


class WebhookError(UnipayError):
    pass


class WebhookSignatureError(WebhookError):
    def __init__(self, provider: Any, reason: Optional[str] = None):
        name = getattr(provider, "value", provider)
        message = f"Invalid webhook signature from {name}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(ErrorCode.WEBHOOK_SIGNATURE_INVALID, message, provider=provider)


class WebhookParsingError(WebhookError):
    def __init__(self, provider: Any, reason: str, cause: Optional[BaseException] = None):
        super().__init__(
            ErrorCode.WEBHOOK_PARSING_FAILED,
            f"Failed to parse webhook from {getattr(provider, 'value', provider)}: {reason}",
            provider=provider,
            cause=cause,
        )


class WebhookProviderNotConfiguredError(WebhookError):
    def __init__(self, provider: Any):
        super().__init__(
            ErrorCode.WEBHOOK_PROVIDER_NOT_CONFIGURED,
            f"Webhook handler not configured for provider '{getattr(provider, 'value', provider)}'",
            provider=provider,
        )


class WebhookTimestampExpiredError(WebhookError):
    def __init__(self, provider: Any, timestamp: datetime, tolerance_seconds: int):
        self.timestamp = timestamp
        self.tolerance_seconds = tolerance_seconds
        super().__init__(
            ErrorCode.WEBHOOK_TIMESTAMP_EXPIRED,
            f"Webhook timestamp from {getattr(provider, 'value', provider)} is too old "
            f"({timestamp.isoformat()}). Tolerance: {tolerance_seconds}s",
            provider=provider,
            details={"timestamp": timestamp.isoformat(), "tolerance_seconds": tolerance_seconds},
        )


# ---------------------------------------------------------------------------
# Validation (raised before any delegation)
# ---------------------------------------------------------------------------


class ValidationError(UnipayError):
    def __init__(
        self,
        code: ErrorCode,
        message: str,
        field: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(code, message, field=field, details=details)


class InvalidAmountError(ValidationError):
    def __init__(self, amount: Any, reason: str):
        self.amount = amount
        super().__init__(
            ErrorCode.INVALID_AMOUNT,
            f"Invalid amount {amount}: {reason}",
            field="money.amount",
            details={"amount": amount},
        )


class InvalidCurrencyError(ValidationError):
    def __init__(self, currency: Any):
        self.currency = currency
        super().__init__(
            ErrorCode.INVALID_CURRENCY,
            f"Invalid currency code '{currency}'. Must be ISO-4217 format.",
            field="money.currency",
            details={"currency": currency},
        )


class InvalidUrlError(ValidationError):
    def __init__(self, field: str, url: Any, reason: Optional[str] = None):
        self.url = url
        message = f"Invalid URL for {field}: {reason}" if reason else f"Invalid URL for {field}: '{url}'"
        super().__init__(ErrorCode.INVALID_URL, message, field=field, details={"url": url})


class InvalidUnipayIdError(ValidationError):
    def __init__(self, unipay_id: Any):
        self.unipay_id = unipay_id
        super().__init__(
            ErrorCode.INVALID_UNIPAY_ID,
            f"Invalid UniPay ID format: '{unipay_id}'. Expected format: 'provider:providerPaymentId'",
            field="unipay_id",
            details={"unipay_id": unipay_id},
        )


class MissingRequiredFieldError(ValidationError):
    def __init__(self, field: str):
        super().__init__(ErrorCode.MISSING_REQUIRED_FIELD, f"Missing required field: {field}", field=field)


class InvalidMetadataError(ValidationError):
    def __init__(self, reason: str):
        super().__init__(ErrorCode.INVALID_METADATA, f"Invalid metadata: {reason}", field="metadata")
