"""
Shared error codes used across layers (Domain/Application/API).

This package exposes ErrorCode at `shared.codes` and keeps
provider-specific status/event mapping tables under `shared.codes.payment_codes`.
"""
from enum import Enum


class ErrorCode(str, Enum):
    """Machine-readable error codes (single source of truth)."""

    # Configuration errors
    INVALID_PROVIDER_CONFIG = "INVALID_PROVIDER_CONFIG"
    MISSING_PROVIDER = "MISSING_PROVIDER"
    DUPLICATE_PROVIDER = "DUPLICATE_PROVIDER"
    INVALID_RESOLUTION_STRATEGY = "INVALID_RESOLUTION_STRATEGY"

    # Provider resolution errors
    NO_PROVIDER_AVAILABLE = "NO_PROVIDER_AVAILABLE"
    PROVIDER_NOT_FOUND = "PROVIDER_NOT_FOUND"
    UNSUPPORTED_CAPABILITY = "UNSUPPORTED_CAPABILITY"
    UNSUPPORTED_CURRENCY = "UNSUPPORTED_CURRENCY"
    UNSUPPORTED_CHECKOUT_MODE = "UNSUPPORTED_CHECKOUT_MODE"

    # Payment errors
    PAYMENT_CREATION_FAILED = "PAYMENT_CREATION_FAILED"
    PAYMENT_NOT_FOUND = "PAYMENT_NOT_FOUND"
    PAYMENT_RETRIEVAL_FAILED = "PAYMENT_RETRIEVAL_FAILED"
    PAYMENT_ALREADY_CAPTURED = "PAYMENT_ALREADY_CAPTURED"
    PAYMENT_EXPIRED = "PAYMENT_EXPIRED"
    PAYMENT_CANCELLED = "PAYMENT_CANCELLED"

    # Refund errors
    REFUND_CREATION_FAILED = "REFUND_CREATION_FAILED"
    REFUND_NOT_FOUND = "REFUND_NOT_FOUND"
    REFUND_RETRIEVAL_FAILED = "REFUND_RETRIEVAL_FAILED"
    PARTIAL_REFUND_NOT_SUPPORTED = "PARTIAL_REFUND_NOT_SUPPORTED"
    REFUND_EXCEEDS_PAYMENT = "REFUND_EXCEEDS_PAYMENT"
    PAYMENT_NOT_REFUNDABLE = "PAYMENT_NOT_REFUNDABLE"
    REFUND_ALREADY_PROCESSED = "REFUND_ALREADY_PROCESSED"

    # Webhook errors
    WEBHOOK_SIGNATURE_INVALID = "WEBHOOK_SIGNATURE_INVALID"
    WEBHOOK_PARSING_FAILED = "WEBHOOK_PARSING_FAILED"
    WEBHOOK_PROVIDER_NOT_CONFIGURED = "WEBHOOK_PROVIDER_NOT_CONFIGURED"
    WEBHOOK_TIMESTAMP_EXPIRED = "WEBHOOK_TIMESTAMP_EXPIRED"

    # Validation errors
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_CURRENCY = "INVALID_CURRENCY"
    INVALID_URL = "INVALID_URL"
    INVALID_UNIPAY_ID = "INVALID_UNIPAY_ID"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    INVALID_METADATA = "INVALID_METADATA"

    # Unhandled
    SYSTEM_ERROR = "SYSTEM_ERROR"
