"""
Stripe adapter using the official stripe-python SDK.

Hosted checkout creates a Checkout Session (``cs_...``); SDK checkout creates
a PaymentIntent (``pi_...``) and returns its client secret. SDK calls are
blocking, so each one runs in a worker thread.

Webhook signatures are checked with ``stripe.WebhookSignature.verify_header``
without a tolerance; the staleness window is applied afterwards on the
header timestamp so a stale event is reported separately from a bad
signature.
"""
from __future__ import annotations

import asyncio
import json
import time
from functools import partial
from typing import Any, Callable, Optional

import stripe

from application.dtos.payments import (
    CreatePaymentInput,
    CreateRefundInput,
    CustomerInfo,
    HostedCheckoutResult,
    Money,
    Payment,
    PaymentWebhookPayload,
    Refund,
    RefundList,
    RefundWebhookPayload,
    SdkCheckoutResult,
    SdkPayload,
    UnknownWebhookPayload,
    WebhookConfig,
    WebhookEvent,
    WebhookRequest,
    WebhookVerificationResult,
)
from application.utils.webhooks import check_timestamp_tolerance, coerce_amount, from_unix, get_header
from domain.payment.capability import AdapterCapabilities, AdapterLimits
from domain.payment.enums import AdapterCapability, CheckoutMode, PaymentProvider, PaymentStatus
from domain.payment.exceptions import (
    PaymentCreationError,
    PaymentNotFoundError,
    PaymentRetrievalError,
    RefundCreationError,
    RefundNotFoundError,
    RefundRetrievalError,
    WebhookParsingError,
)
from domain.payment.unipay_id import create_unipay_id
from infrastructure.external.payments.base import BasePaymentClient
from shared.codes import ErrorCode
from shared.codes.payment_codes import PROVIDER_STATUS_TO_INTERNAL, map_event_type


SIGNATURE_HEADER = "Stripe-Signature"
REFUND_REASONS = {"duplicate", "fraudulent", "requested_by_customer"}

STRIPE_CAPABILITIES = AdapterCapabilities(
    provider=PaymentProvider.STRIPE,
    capabilities=frozenset(
        {
            AdapterCapability.HOSTED_CHECKOUT,
            AdapterCapability.SDK_CHECKOUT,
            AdapterCapability.PARTIAL_REFUND,
            AdapterCapability.FULL_REFUND,
            AdapterCapability.MULTIPLE_REFUNDS,
            AdapterCapability.WEBHOOKS,
            AdapterCapability.PAYMENT_RETRIEVAL,
            AdapterCapability.METADATA,
            AdapterCapability.IDEMPOTENCY,
            AdapterCapability.MULTI_CURRENCY,
            AdapterCapability.CARDS,
            AdapterCapability.WALLETS,
        }
    ),
    supported_currencies=(
        "USD", "EUR", "GBP", "INR", "JPY", "AUD", "CAD", "CHF", "CNY", "HKD",
        "NZD", "SGD", "SEK", "DKK", "NOK", "MXN", "BRL", "PLN", "CZK", "HUF",
        "ILS", "MYR", "PHP", "THB", "ZAR", "AED", "SAR", "KRW", "TWD", "VND",
    ),
    supported_payment_methods=("card", "wallet"),
    limits=AdapterLimits(
        min_amount=50,  # 50 cents USD equivalent
        max_amount=99_999_999,
        max_metadata_keys=50,
        max_metadata_value_length=500,
    ),
)


def _id_of(value: Any) -> Optional[str]:
    """Expandable fields arrive either as an id string or as the object."""
    if value is None or isinstance(value, str):
        return value
    return value.get("id")


def _session_status(status: Optional[str], payment_status: Optional[str]) -> PaymentStatus:
    # expired wins, then the payment outcome, then the session state
    table = PROVIDER_STATUS_TO_INTERNAL["stripe.checkout_session"]
    if status == "expired":
        return table[status]
    for raw in (payment_status, status):
        if raw in table:
            return table[raw]
    return PaymentStatus.PENDING


def _header_timestamp(header: str) -> Optional[int]:
    """The ``t=`` value of a ``Stripe-Signature`` header."""
    for item in header.split(","):
        key, _, value = item.strip().partition("=")
        if key == "t":
            try:
                return int(value)
            except ValueError:
                return None
    return None


class StripeAdapter(BasePaymentClient):
    provider = PaymentProvider.STRIPE
    capabilities = STRIPE_CAPABILITIES

    def __init__(
        self,
        *,
        secret_key: str,
        api_version: Optional[str] = None,
        max_network_retries: int = 2,
    ) -> None:
        super().__init__()
        self._secret_key = secret_key
        self._api_version = api_version
        stripe.max_network_retries = max_network_retries

    async def _call(self, fn: Callable[..., Any], *args, **kwargs) -> Any:
        kwargs.setdefault("api_key", self._secret_key)
        if self._api_version:
            kwargs.setdefault("stripe_version", self._api_version)
        return await asyncio.to_thread(partial(fn, *args, **kwargs))

    # -- payments ---------------------------------------------------------

    async def create_payment(self, input: CreatePaymentInput) -> HostedCheckoutResult | SdkCheckoutResult:
        try:
            if input.preferred_checkout_mode == CheckoutMode.SDK:
                return await self._create_payment_intent(input)
            return await self._create_checkout_session(input)
        except stripe.StripeError as exc:
            raise PaymentCreationError(
                exc.user_message or str(exc), provider=self.provider, provider_code=exc.code, cause=exc
            ) from exc

    async def _create_checkout_session(self, input: CreatePaymentInput) -> HostedCheckoutResult:
        params: dict[str, Any] = {
            "mode": "payment",
            "success_url": input.success_url,
            "cancel_url": input.cancel_url,
            "line_items": [
                {
                    "price_data": {
                        "currency": input.money.currency.lower(),
                        "unit_amount": input.money.amount,
                        "product_data": {"name": input.description or "Payment"},
                    },
                    "quantity": 1,
                }
            ],
            "metadata": input.metadata or {},
        }
        if input.order_id:
            params["client_reference_id"] = input.order_id
        if input.customer and input.customer.email:
            params["customer_email"] = input.customer.email
        if input.expires_in_seconds:
            params["expires_at"] = int(time.time()) + input.expires_in_seconds
        if input.idempotency_key:
            params["idempotency_key"] = input.idempotency_key

        session = await self._call(stripe.checkout.Session.create, **params)
        self._log("stripe_checkout_session_created", provider_payment_id=session["id"])
        expires_at = session.get("expires_at")
        return HostedCheckoutResult(
            provider=self.provider,
            provider_payment_id=session["id"],
            unipay_id=create_unipay_id(self.provider, session["id"]),
            status=_session_status(session.get("status"), session.get("payment_status")),
            checkout_url=session.get("url") or "",
            expires_at=from_unix(expires_at) if expires_at else None,
            metadata=input.metadata,
            raw=session,
        )

    async def _create_payment_intent(self, input: CreatePaymentInput) -> SdkCheckoutResult:
        params: dict[str, Any] = {
            "amount": input.money.amount,
            "currency": input.money.currency.lower(),
            "metadata": input.metadata or {},
            "automatic_payment_methods": {"enabled": True},
        }
        if input.description:
            params["description"] = input.description
        if input.customer and input.customer.email:
            params["receipt_email"] = input.customer.email
        if input.idempotency_key:
            params["idempotency_key"] = input.idempotency_key

        intent = await self._call(stripe.PaymentIntent.create, **params)
        self._log("stripe_payment_intent_created", provider_payment_id=intent["id"])
        return SdkCheckoutResult(
            provider=self.provider,
            provider_payment_id=intent["id"],
            unipay_id=create_unipay_id(self.provider, intent["id"]),
            status=self._map_status("payment_intent", intent.get("status")),
            sdk_payload=SdkPayload(
                client_secret=intent.get("client_secret"),
                amount=coerce_amount(intent.get("amount")),
                currency=intent.get("currency"),
            ),
            metadata=input.metadata,
            raw=intent,
        )

    async def get_payment(self, provider_payment_id: str) -> Payment:
        try:
            if provider_payment_id.startswith("pi_"):
                return await self._get_payment_intent(provider_payment_id)
            return await self._get_checkout_session(provider_payment_id)
        except stripe.InvalidRequestError as exc:
            if exc.code == "resource_missing":
                raise PaymentNotFoundError(provider_payment_id, self.provider) from exc
            raise PaymentRetrievalError(
                provider_payment_id, str(exc), provider=self.provider, provider_code=exc.code, cause=exc
            ) from exc
        except stripe.StripeError as exc:
            raise PaymentRetrievalError(
                provider_payment_id, str(exc), provider=self.provider, provider_code=exc.code, cause=exc
            ) from exc

    async def _get_checkout_session(self, session_id: str) -> Payment:
        session = await self._call(stripe.checkout.Session.retrieve, session_id, expand=["payment_intent"])
        created_at = from_unix(session.get("created"))
        details = session.get("customer_details")
        currency = session.get("currency")
        return Payment(
            provider=self.provider,
            provider_payment_id=session["id"],
            unipay_id=create_unipay_id(self.provider, session["id"]),
            status=_session_status(session.get("status"), session.get("payment_status")),
            money=Money(amount=coerce_amount(session.get("amount_total")), currency=(currency or "usd").upper()),
            amount_refunded=0,
            created_at=created_at,
            updated_at=created_at,
            captured_at=created_at if session.get("payment_status") == "paid" else None,
            customer=CustomerInfo(
                email=details.get("email"),
                name=details.get("name"),
                phone=details.get("phone"),
            )
            if details
            else None,
            metadata=dict(session.get("metadata") or {}) or None,
            raw=session,
        )

    async def _get_payment_intent(self, intent_id: str) -> Payment:
        intent = await self._call(stripe.PaymentIntent.retrieve, intent_id)
        created_at = from_unix(intent.get("created"))
        error = intent.get("last_payment_error") or {}
        return Payment(
            provider=self.provider,
            provider_payment_id=intent["id"],
            unipay_id=create_unipay_id(self.provider, intent["id"]),
            status=self._map_status("payment_intent", intent.get("status")),
            money=Money(amount=coerce_amount(intent.get("amount")), currency=(intent.get("currency") or "").upper()),
            amount_refunded=0,
            created_at=created_at,
            updated_at=created_at,
            captured_at=created_at if intent.get("status") == "succeeded" else None,
            customer=CustomerInfo(email=intent["receipt_email"]) if intent.get("receipt_email") else None,
            metadata=dict(intent.get("metadata") or {}) or None,
            failure_reason=error.get("message"),
            failure_code=error.get("code"),
            raw=intent,
        )

    # -- refunds ----------------------------------------------------------

    async def _payment_intent_id(self, provider_payment_id: str) -> Optional[str]:
        if not provider_payment_id.startswith("cs_"):
            return provider_payment_id
        session = await self._call(stripe.checkout.Session.retrieve, provider_payment_id)
        return _id_of(session.get("payment_intent"))

    def _to_refund(self, refund: Any, provider_payment_id: str, currency: Optional[str] = None) -> Refund:
        return Refund(
            provider=self.provider,
            provider_refund_id=refund["id"],
            provider_payment_id=provider_payment_id,
            unipay_id=create_unipay_id(self.provider, refund["id"]),
            status=self._map_refund_status(refund.get("status")),
            money=Money(
                amount=coerce_amount(refund.get("amount")),
                currency=(currency or refund.get("currency") or "").upper(),
            ),
            created_at=from_unix(refund.get("created")),
            reason=refund.get("reason"),
            failure_reason=refund.get("failure_reason"),
            raw=refund,
        )

    async def create_refund(self, provider_payment_id: str, input: Optional[CreateRefundInput] = None) -> Refund:
        try:
            intent_id = await self._payment_intent_id(provider_payment_id)
            if not intent_id:
                raise RefundCreationError(
                    "Cannot refund: no payment intent associated with this session",
                    provider=self.provider,
                    provider_payment_id=provider_payment_id,
                )
            params: dict[str, Any] = {"payment_intent": intent_id}
            if input is not None:
                if input.amount:
                    params["amount"] = input.amount
                if input.reason in REFUND_REASONS:
                    params["reason"] = input.reason
                if input.metadata:
                    params["metadata"] = input.metadata
                if input.idempotency_key:
                    params["idempotency_key"] = input.idempotency_key
            refund = await self._call(stripe.Refund.create, **params)
        except stripe.StripeError as exc:
            raise RefundCreationError(
                str(exc),
                provider=self.provider,
                provider_code=exc.code,
                provider_payment_id=provider_payment_id,
                cause=exc,
            ) from exc
        self._log("stripe_refund_created", provider_refund_id=refund["id"], payment_intent=intent_id)
        result = self._to_refund(refund, provider_payment_id)
        if input is not None and input.reason and not result.reason:
            result = result.model_copy(update={"reason": input.reason})
        return result

    async def get_refund(self, provider_refund_id: str) -> Refund:
        try:
            refund = await self._call(stripe.Refund.retrieve, provider_refund_id)
        except stripe.InvalidRequestError as exc:
            if exc.code == "resource_missing":
                raise RefundNotFoundError(provider_refund_id, self.provider) from exc
            raise RefundRetrievalError(
                provider_refund_id, str(exc), provider=self.provider, provider_code=exc.code, cause=exc
            ) from exc
        except stripe.StripeError as exc:
            raise RefundRetrievalError(
                provider_refund_id, str(exc), provider=self.provider, provider_code=exc.code, cause=exc
            ) from exc
        return self._to_refund(refund, _id_of(refund.get("payment_intent")) or "")

    async def list_refunds(self, provider_payment_id: str) -> RefundList:
        try:
            intent_id = await self._payment_intent_id(provider_payment_id)
            if not intent_id:
                return RefundList(refunds=[], has_more=False)
            page = await self._call(stripe.Refund.list, payment_intent=intent_id, limit=100)
        except stripe.StripeError as exc:
            raise RefundRetrievalError(
                provider_payment_id, str(exc), provider=self.provider, provider_code=exc.code, cause=exc
            ) from exc
        refunds = [self._to_refund(item, provider_payment_id) for item in page.get("data") or []]
        return RefundList(refunds=refunds, has_more=bool(page.get("has_more")))

    # -- webhooks ---------------------------------------------------------

    def verify_webhook_signature(self, request: WebhookRequest, config: WebhookConfig) -> WebhookVerificationResult:
        header = get_header(request.headers, SIGNATURE_HEADER)
        if not header:
            return WebhookVerificationResult(
                is_valid=False,
                error=f"Missing {SIGNATURE_HEADER.lower()} header",
                error_code=ErrorCode.WEBHOOK_SIGNATURE_INVALID,
            )
        if not config.signing_secret:
            return WebhookVerificationResult(
                is_valid=False, error="Missing signing secret", error_code=ErrorCode.WEBHOOK_SIGNATURE_INVALID
            )
        try:
            # tolerance=None: staleness is judged below so it gets its own error code
            stripe.WebhookSignature.verify_header(request.raw_body, header, config.signing_secret, tolerance=None)
        except stripe.SignatureVerificationError as exc:
            return WebhookVerificationResult(
                is_valid=False,
                error=exc.user_message or str(exc),
                error_code=ErrorCode.WEBHOOK_SIGNATURE_INVALID,
            )

        timestamp = _header_timestamp(header)
        if timestamp is None:
            return WebhookVerificationResult(
                is_valid=False,
                error="Unable to extract timestamp from header",
                error_code=ErrorCode.WEBHOOK_SIGNATURE_INVALID,
            )
        return check_timestamp_tolerance(timestamp, config.timestamp_tolerance_seconds)

    def parse_webhook_event(self, request: WebhookRequest) -> WebhookEvent:
        try:
            body = json.loads(request.raw_body)
        except ValueError as exc:
            raise WebhookParsingError(self.provider, f"Invalid JSON body: {exc}", exc) from exc
        if not isinstance(body, dict) or not isinstance(body.get("type"), str):
            raise WebhookParsingError(self.provider, "Missing 'type' field")

        event_type = body["type"]
        try:
            return WebhookEvent(
                provider=self.provider,
                event_type=map_event_type(self.provider.value, event_type),
                provider_event_id=str(body.get("id") or ""),
                provider_event_type=event_type,
                timestamp=from_unix(body.get("created")),
                payload=self._parse_payload(event_type, (body.get("data") or {}).get("object") or {}),
                raw=body,
            )
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise WebhookParsingError(self.provider, str(exc), exc) from exc

    def _parse_payload(self, event_type: str, obj: dict[str, Any]):
        if event_type.startswith("checkout.session."):
            return PaymentWebhookPayload(
                provider_payment_id=obj["id"],
                status=_session_status(obj.get("status"), obj.get("payment_status")),
                money=Money(
                    amount=coerce_amount(obj.get("amount_total")),
                    currency=(obj.get("currency") or "usd").upper(),
                ),
                metadata=obj.get("metadata") or None,
            )

        if event_type.startswith("payment_intent."):
            error = obj.get("last_payment_error") or {}
            return PaymentWebhookPayload(
                provider_payment_id=obj["id"],
                status=self._map_status("payment_intent", obj.get("status")),
                money=Money(amount=coerce_amount(obj.get("amount")), currency=(obj.get("currency") or "").upper()),
                metadata=obj.get("metadata") or None,
                failure_reason=error.get("message"),
                failure_code=error.get("code"),
            )

        if event_type == "charge.refunded":
            refunds = (obj.get("refunds") or {}).get("data") or []
            if refunds:
                refund = refunds[0]
                return RefundWebhookPayload(
                    provider_refund_id=refund["id"],
                    provider_payment_id=_id_of(obj.get("payment_intent")) or obj.get("id") or "",
                    status=self._map_refund_status(refund.get("status")),
                    money=Money(
                        amount=coerce_amount(refund.get("amount")),
                        currency=(obj.get("currency") or "").upper(),
                    ),
                )
        elif event_type.startswith("refund."):
            return RefundWebhookPayload(
                provider_refund_id=obj["id"],
                provider_payment_id=_id_of(obj.get("payment_intent")) or "",
                status=self._map_refund_status(obj.get("status")),
                money=Money(amount=coerce_amount(obj.get("amount")), currency=(obj.get("currency") or "").upper()),
                failure_reason=obj.get("failure_reason"),
            )

        return UnknownWebhookPayload(data=obj)
