"""
Webhook signature primitives and payload coercion helpers.

Razorpay signs ``hex(HMAC-SHA256(secret, raw_body))`` into a single header
(``X-Razorpay-Signature``), checked by ``verify_hmac_sha256``. Stripe's
``t=<unix>,v1=<hex>`` header is verified by the stripe SDK in the adapter;
``check_timestamp_tolerance`` then applies the staleness window to its
timestamp.

Verification functions never raise; they always return a
WebhookVerificationResult so callers can branch without try/except.
"""
from __future__ import annotations

import hashlib
import hmac
import time
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from application.dtos.payments import WebhookVerificationResult
from shared.codes import ErrorCode


DEFAULT_TOLERANCE_SECONDS = 300


def get_header(headers: Mapping[str, Any], name: str) -> Optional[str]:
    """Case-insensitive header lookup.

    Frameworks expose headers either as plain strings or as lists; a
    list-of-one is unwrapped to its single value.
    """
    wanted = name.lower()
    for key, value in (headers or {}).items():
        if key.lower() != wanted:
            continue
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None
        return value or None
    return None


def compute_hmac_sha256(secret: str, payload: str) -> str:
    return hmac.new(secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256).hexdigest()


def _invalid(error: str, code: ErrorCode = ErrorCode.WEBHOOK_SIGNATURE_INVALID, **kwargs) -> WebhookVerificationResult:
    return WebhookVerificationResult(is_valid=False, error=error, error_code=code, **kwargs)


def verify_hmac_sha256(raw_body: str, signature: Optional[str], secret: str) -> WebhookVerificationResult:
    if not signature:
        return _invalid("Missing signature")
    if not secret:
        return _invalid("Missing signing secret")
    expected = compute_hmac_sha256(secret, raw_body)
    if not hmac.compare_digest(expected, signature.strip()):
        return _invalid("Signature mismatch")
    return WebhookVerificationResult(is_valid=True)


def check_timestamp_tolerance(
    timestamp: int,
    tolerance_seconds: Optional[int] = None,
    now: Optional[float] = None,
) -> WebhookVerificationResult:
    """Staleness check for a signed timestamp; call only once the signature matched.

    Timestamps older than the tolerance are rejected, future timestamps are
    accepted (the check guards against replay of old payloads, not clock
    skew). An age exactly equal to the tolerance passes.
    """
    try:
        signed_at = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return _invalid(f"Timestamp {timestamp} is out of range")

    tolerance = DEFAULT_TOLERANCE_SECONDS if tolerance_seconds is None else tolerance_seconds
    current = time.time() if now is None else now
    if current - timestamp > tolerance:
        return _invalid(
            f"Timestamp outside the tolerance zone ({tolerance}s)",
            ErrorCode.WEBHOOK_TIMESTAMP_EXPIRED,
            timestamp=signed_at,
        )
    return WebhookVerificationResult(is_valid=True, timestamp=signed_at)


def coerce_amount(value: Any) -> int:
    """Numeric or numeric-string amount to int; missing or garbage becomes 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        value = value.strip()
        try:
            return int(value)
        except ValueError:
            pass
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0


def from_unix(value: Any) -> datetime:
    """Unix seconds (int or numeric string) to an aware UTC datetime.

    Raises ValueError when the value is outside the platform's datetime range.
    """
    seconds = coerce_amount(value)
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise ValueError(f"timestamp {seconds} out of range") from exc
