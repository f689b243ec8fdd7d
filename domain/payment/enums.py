"""
Closed enumerations shared by every payment component.
"""
from __future__ import annotations

from enum import Enum


class PaymentProvider(str, Enum):
    """Known gateway tags. Add a member here when a new adapter lands."""

    STRIPE = "stripe"
    RAZORPAY = "razorpay"
    PAYU = "payu"
    PAYPAL = "paypal"
    PHONEPE = "phonepe"
    CASHFREE = "cashfree"


class PaymentStatus(str, Enum):
    CREATED = "CREATED"
    PENDING = "PENDING"
    REQUIRES_ACTION = "REQUIRES_ACTION"
    PROCESSING = "PROCESSING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class RefundStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class CheckoutMode(str, Enum):
    """How the payment UI is presented.

    - hosted: redirect the customer to the gateway's checkout page
    - sdk: the frontend drives the gateway SDK with returned credentials
    """

    HOSTED = "hosted"
    SDK = "sdk"


class WebhookEventType(str, Enum):
    PAYMENT_CREATED = "payment.created"
    PAYMENT_PENDING = "payment.pending"
    PAYMENT_PROCESSING = "payment.processing"
    PAYMENT_SUCCEEDED = "payment.succeeded"
    PAYMENT_FAILED = "payment.failed"
    PAYMENT_CANCELLED = "payment.cancelled"
    PAYMENT_EXPIRED = "payment.expired"

    REFUND_CREATED = "refund.created"
    REFUND_PROCESSING = "refund.processing"
    REFUND_SUCCEEDED = "refund.succeeded"
    REFUND_FAILED = "refund.failed"

    UNKNOWN = "unknown"


class AdapterCapability(str, Enum):
    """Feature tags an adapter may declare."""

    HOSTED_CHECKOUT = "hosted_checkout"
    SDK_CHECKOUT = "sdk_checkout"
    PARTIAL_REFUND = "partial_refund"
    FULL_REFUND = "full_refund"
    MULTIPLE_REFUNDS = "multiple_refunds"
    WEBHOOKS = "webhooks"
    PAYMENT_RETRIEVAL = "payment_retrieval"
    METADATA = "metadata"
    IDEMPOTENCY = "idempotency"
    MULTI_CURRENCY = "multi_currency"
    SUBSCRIPTIONS = "subscriptions"
    # Payment method families
    UPI = "upi"
    NET_BANKING = "net_banking"
    WALLETS = "wallets"
    CARDS = "cards"
    EMI = "emi"


class ResolutionStrategy(str, Enum):
    FIRST_AVAILABLE = "first-available"
    ROUND_ROBIN = "round-robin"
    BY_CURRENCY = "by-currency"
    BY_AMOUNT = "by-amount"
    CUSTOM = "custom"


# Checkout mode -> capability the adapter must declare for it
CHECKOUT_MODE_CAPABILITY = {
    CheckoutMode.HOSTED: AdapterCapability.HOSTED_CHECKOUT,
    CheckoutMode.SDK: AdapterCapability.SDK_CHECKOUT,
}
