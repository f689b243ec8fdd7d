"""
Provider status and webhook event-type mappings.

Keys are the raw strings each gateway sends; values are the normalized
statuses. Unknown strings are handled by the caller (event types fall back
to ``WebhookEventType.UNKNOWN``).
"""
from __future__ import annotations

from domain.payment.enums import PaymentStatus, RefundStatus, WebhookEventType


PROVIDER_EVENT_TYPE_TO_INTERNAL: dict[str, dict[str, WebhookEventType]] = {
    "stripe": {
        "checkout.session.completed": WebhookEventType.PAYMENT_SUCCEEDED,
        "checkout.session.expired": WebhookEventType.PAYMENT_EXPIRED,
        "payment_intent.succeeded": WebhookEventType.PAYMENT_SUCCEEDED,
        "payment_intent.payment_failed": WebhookEventType.PAYMENT_FAILED,
        "payment_intent.canceled": WebhookEventType.PAYMENT_CANCELLED,
        "payment_intent.processing": WebhookEventType.PAYMENT_PROCESSING,
        "payment_intent.created": WebhookEventType.PAYMENT_CREATED,
        "charge.refunded": WebhookEventType.REFUND_SUCCEEDED,
        "refund.created": WebhookEventType.REFUND_CREATED,
        "refund.updated": WebhookEventType.REFUND_PROCESSING,
        "refund.failed": WebhookEventType.REFUND_FAILED,
    },
    "razorpay": {
        "payment.authorized": WebhookEventType.PAYMENT_PENDING,
        "payment.captured": WebhookEventType.PAYMENT_SUCCEEDED,
        "payment.failed": WebhookEventType.PAYMENT_FAILED,
        "order.paid": WebhookEventType.PAYMENT_SUCCEEDED,
        "refund.created": WebhookEventType.REFUND_CREATED,
        "refund.processed": WebhookEventType.REFUND_SUCCEEDED,
        "refund.failed": WebhookEventType.REFUND_FAILED,
    },
}


# Keyed by "<provider>.<object>" since one gateway exposes several objects
PROVIDER_STATUS_TO_INTERNAL: dict[str, dict[str, PaymentStatus]] = {
    "stripe.payment_intent": {
        "succeeded": PaymentStatus.SUCCEEDED,
        "processing": PaymentStatus.PROCESSING,
        "requires_payment_method": PaymentStatus.REQUIRES_ACTION,
        "requires_confirmation": PaymentStatus.REQUIRES_ACTION,
        "requires_action": PaymentStatus.REQUIRES_ACTION,
        "canceled": PaymentStatus.CANCELLED,
        "requires_capture": PaymentStatus.PENDING,
    },
    # Session ``status`` and ``payment_status`` share this table
    "stripe.checkout_session": {
        "expired": PaymentStatus.EXPIRED,
        "paid": PaymentStatus.SUCCEEDED,
        "complete": PaymentStatus.SUCCEEDED,
        "unpaid": PaymentStatus.PENDING,
        "open": PaymentStatus.CREATED,
    },
    "razorpay.payment_link": {
        "created": PaymentStatus.CREATED,
        "paid": PaymentStatus.SUCCEEDED,
        "partially_paid": PaymentStatus.PENDING,
        "expired": PaymentStatus.EXPIRED,
        "cancelled": PaymentStatus.CANCELLED,
    },
    "razorpay.order": {
        "created": PaymentStatus.CREATED,
        "attempted": PaymentStatus.PENDING,
        "paid": PaymentStatus.SUCCEEDED,
    },
    "razorpay.payment": {
        "created": PaymentStatus.CREATED,
        "authorized": PaymentStatus.PENDING,
        "captured": PaymentStatus.SUCCEEDED,
        "refunded": PaymentStatus.SUCCEEDED,
        "failed": PaymentStatus.FAILED,
    },
}


PROVIDER_REFUND_STATUS_TO_INTERNAL: dict[str, dict[str, RefundStatus]] = {
    "stripe": {
        "succeeded": RefundStatus.SUCCEEDED,
        "pending": RefundStatus.PENDING,
        "requires_action": RefundStatus.PENDING,
        "failed": RefundStatus.FAILED,
        "canceled": RefundStatus.FAILED,
    },
    "razorpay": {
        "pending": RefundStatus.PENDING,
        "processed": RefundStatus.SUCCEEDED,
        "failed": RefundStatus.FAILED,
    },
}


def map_event_type(provider: str, event_name: str) -> WebhookEventType:
    return PROVIDER_EVENT_TYPE_TO_INTERNAL.get(provider, {}).get(event_name, WebhookEventType.UNKNOWN)


def map_payment_status(kind: str, raw_status: str, default: PaymentStatus = PaymentStatus.PENDING) -> PaymentStatus:
    return PROVIDER_STATUS_TO_INTERNAL.get(kind, {}).get(raw_status, default)


def map_refund_status(provider: str, raw_status: str, default: RefundStatus = RefundStatus.PENDING) -> RefundStatus:
    return PROVIDER_REFUND_STATUS_TO_INTERNAL.get(provider, {}).get(raw_status, default)
