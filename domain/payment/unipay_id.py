"""
UniPay ID codec.

A UniPay ID is the single cross-system handle for a payment or refund:
``<provider>:<providerPaymentId>``, e.g. ``stripe:cs_test_abc123`` or
``razorpay:order_ABC123``. The provider segment lets any operation be routed
without a lookup. Vendor ids are assumed never to contain ``:``; decoding
splits on the first separator only.
"""
from __future__ import annotations

from typing import NamedTuple, Optional

from domain.payment.enums import PaymentProvider
from domain.payment.exceptions import InvalidUnipayIdError, MissingRequiredFieldError


SEPARATOR = ":"

_KNOWN_PROVIDERS = {p.value: p for p in PaymentProvider}


class ParsedUnipayId(NamedTuple):
    provider: PaymentProvider
    provider_payment_id: str


def create_unipay_id(provider: PaymentProvider | str, provider_payment_id: str) -> str:
    if not provider_payment_id or not provider_payment_id.strip():
        raise MissingRequiredFieldError("provider_payment_id")
    return f"{PaymentProvider(provider).value}{SEPARATOR}{provider_payment_id}"


def _split(value: object) -> Optional[tuple[PaymentProvider, str]]:
    if not value or not isinstance(value, str):
        return None
    provider_part, sep, rest = value.partition(SEPARATOR)
    if not sep:
        return None
    provider = _KNOWN_PROVIDERS.get(provider_part)
    if provider is None:
        return None
    return provider, rest


def parse_unipay_id(unipay_id: str) -> ParsedUnipayId:
    """Decode a UniPay ID, raising InvalidUnipayIdError on any malformation."""
    parts = _split(unipay_id)
    if parts is None:
        raise InvalidUnipayIdError(unipay_id if isinstance(unipay_id, str) else str(unipay_id))
    provider, provider_payment_id = parts
    if not provider_payment_id.strip():
        raise InvalidUnipayIdError(unipay_id)
    return ParsedUnipayId(provider, provider_payment_id)


def get_provider_from_unipay_id(unipay_id: str) -> Optional[PaymentProvider]:
    """Best-effort provider extraction; returns None instead of raising."""
    parts = _split(unipay_id)
    if parts is None or not parts[1].strip():
        return None
    return parts[0]


def is_valid_unipay_id(value: str) -> bool:
    return get_provider_from_unipay_id(value) is not None
