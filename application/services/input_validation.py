"""
Request validation that does not depend on the chosen provider.

Runs before resolution so a malformed request never consumes a round-robin
slot or reaches an adapter.
"""
from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlparse

from application.dtos.payments import CreatePaymentInput, CreateRefundInput
from domain.payment.exceptions import (
    InvalidAmountError,
    InvalidCurrencyError,
    InvalidMetadataError,
    InvalidUrlError,
    MissingRequiredFieldError,
)


_CURRENCY_RE = re.compile(r"^[A-Za-z]{3}$")


def _validate_url(field: str, url: Optional[str]) -> None:
    if not url:
        raise MissingRequiredFieldError(field)
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise InvalidUrlError(field, url, "must use http or https")
    if not parsed.netloc:
        raise InvalidUrlError(field, url, "must be an absolute URL")


def validate_amount(amount: object) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmountError(amount, "must be an integer in the smallest currency unit")
    if amount <= 0:
        raise InvalidAmountError(amount, "must be greater than zero")


def validate_payment_input(input: CreatePaymentInput) -> None:
    validate_amount(input.money.amount)
    if not isinstance(input.money.currency, str) or not _CURRENCY_RE.match(input.money.currency):
        raise InvalidCurrencyError(input.money.currency)
    _validate_url("success_url", input.success_url)
    _validate_url("cancel_url", input.cancel_url)
    for key, value in (input.metadata or {}).items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise InvalidMetadataError(f"keys and values must be strings (key '{key}')")


def validate_refund_input(input: Optional[CreateRefundInput]) -> None:
    if input is None or input.amount is None:
        return
    validate_amount(input.amount)
