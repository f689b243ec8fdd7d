"""
Razorpay adapter over the REST API (httpx + tenacity via BasePaymentClient).

Hosted checkout uses Payment Links (customer email or phone required); SDK
checkout uses Orders and returns what Razorpay Checkout.js needs. Webhooks
are signed with ``hex(HMAC-SHA256(secret, raw_body))`` in
``X-Razorpay-Signature``.

Razorpay sends several numeric fields as strings depending on the endpoint,
so amounts and timestamps go through ``coerce_amount``.
"""
from __future__ import annotations

import json
import time
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

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
from application.utils.webhooks import coerce_amount, from_unix, get_header, verify_hmac_sha256
from domain.payment.capability import AdapterCapabilities, AdapterLimits
from domain.payment.enums import AdapterCapability, CheckoutMode, PaymentProvider, PaymentStatus
from domain.payment.exceptions import (
    MissingRequiredFieldError,
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
from infrastructure.external.payments.exceptions import ProviderAPIError
from shared.codes.payment_codes import map_event_type


SIGNATURE_HEADER = "X-Razorpay-Signature"

RAZORPAY_CAPABILITIES = AdapterCapabilities(
    provider=PaymentProvider.RAZORPAY,
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
            AdapterCapability.MULTI_CURRENCY,
            AdapterCapability.CARDS,
            AdapterCapability.UPI,
            AdapterCapability.NET_BANKING,
            AdapterCapability.WALLETS,
        }
    ),
    supported_currencies=(
        "INR", "USD", "EUR", "GBP", "SGD", "AED", "AUD", "CAD", "CNY", "HKD",
        "JPY", "MYR", "NZD", "PHP", "SAR", "SEK", "THB", "ZAR",
    ),
    supported_payment_methods=("card", "upi", "netbanking", "wallet"),
    limits=AdapterLimits(
        min_amount=100,  # 1 INR in paise
        max_amount=50_000_000,
        max_metadata_keys=15,
        max_metadata_value_length=256,
    ),
)


def _notes(value: Any) -> Optional[dict[str, Any]]:
    # Razorpay returns [] for empty notes
    return value if isinstance(value, dict) and value else None


def _opt_str(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


class RazorpayAdapter(BasePaymentClient):
    provider = PaymentProvider.RAZORPAY
    capabilities = RAZORPAY_CAPABILITIES

    def __init__(
        self,
        *,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com/v1",
        timeouts: Optional[dict[str, float]] = None,
        retry: Optional[dict[str, Any]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(
            base_url=base_url,
            auth=(key_id, key_secret),
            timeouts=timeouts,
            retry=retry,
            transport=transport,
        )
        self.key_id = key_id

    def _api_error(self, response: httpx.Response) -> ProviderAPIError:
        try:
            error = response.json().get("error") or {}
        except ValueError:
            error = {}
        return ProviderAPIError(
            error.get("description") or response.text or response.reason_phrase,
            provider=self.provider.value,
            status_code=response.status_code,
            provider_code=error.get("code"),
            body=error,
        )

    @staticmethod
    def _is_missing(exc: ProviderAPIError) -> bool:
        return exc.is_not_found or "does not exist" in (exc.message or "").lower()

    # -- payments ---------------------------------------------------------

    async def create_payment(self, input: CreatePaymentInput) -> HostedCheckoutResult | SdkCheckoutResult:
        try:
            if input.preferred_checkout_mode == CheckoutMode.SDK:
                return await self._create_order(input)
            return await self._create_payment_link(input)
        except ProviderAPIError as exc:
            raise PaymentCreationError(
                exc.message, provider=self.provider, provider_code=exc.provider_code, cause=exc
            ) from exc
        except httpx.HTTPError as exc:
            raise PaymentCreationError(str(exc) or "Payment creation failed", provider=self.provider, cause=exc) from exc

    async def _create_payment_link(self, input: CreatePaymentInput) -> HostedCheckoutResult:
        customer = input.customer
        if customer is None or not (customer.email or customer.phone):
            raise MissingRequiredFieldError(
                "customer.email or customer.phone (Razorpay Payment Links require customer email or phone; "
                "provide customer details or use preferred_checkout_mode='sdk')"
            )
        body: dict[str, Any] = {
            "amount": input.money.amount,
            "currency": input.money.currency.upper(),
            "description": input.description or "Payment",
            "callback_url": input.success_url,
            "callback_method": "get",
            "customer": {
                "name": customer.name or "",
                "email": customer.email,
                "contact": customer.phone,
            },
        }
        if input.metadata:
            body["notes"] = input.metadata
        if input.order_id:
            body["reference_id"] = input.order_id
        if input.expires_in_seconds:
            body["expire_by"] = int(time.time()) + input.expires_in_seconds

        link = await self._request("POST", "/payment_links", json=body)
        self._log("razorpay_payment_link_created", provider_payment_id=link["id"])
        expire_by = coerce_amount(link.get("expire_by"))
        return HostedCheckoutResult(
            provider=self.provider,
            provider_payment_id=link["id"],
            unipay_id=create_unipay_id(self.provider, link["id"]),
            status=self._map_status("payment_link", link.get("status")),
            checkout_url=link.get("short_url") or "",
            expires_at=from_unix(expire_by) if expire_by else None,
            metadata=input.metadata,
            raw=link,
        )

    async def _create_order(self, input: CreatePaymentInput) -> SdkCheckoutResult:
        body = {
            "amount": input.money.amount,
            "currency": input.money.currency.upper(),
            "receipt": input.order_id or f"rcpt_{int(time.time() * 1000)}",
            "notes": input.metadata or {},
        }
        order = await self._request("POST", "/orders", json=body)
        self._log("razorpay_order_created", provider_payment_id=order["id"])
        prefill = None
        if input.customer is not None:
            prefill = {
                "name": input.customer.name,
                "email": input.customer.email,
                "contact": input.customer.phone,
            }
        return SdkCheckoutResult(
            provider=self.provider,
            provider_payment_id=order["id"],
            unipay_id=create_unipay_id(self.provider, order["id"]),
            status=self._map_status("order", order.get("status")),
            sdk_payload=SdkPayload(
                order_id=order["id"],
                amount=coerce_amount(order.get("amount")),
                currency=order.get("currency"),
                provider_data={
                    "key_id": self.key_id,
                    "name": input.description or "Payment",
                    "prefill": prefill,
                    "notes": input.metadata,
                },
            ),
            metadata=input.metadata,
            raw=order,
        )

    async def get_payment(self, provider_payment_id: str) -> Payment:
        try:
            if provider_payment_id.startswith("plink_"):
                return await self._get_payment_link(provider_payment_id)
            if provider_payment_id.startswith("order_"):
                return await self._get_order(provider_payment_id)
            return await self._get_payment_by_id(provider_payment_id)
        except ProviderAPIError as exc:
            if self._is_missing(exc):
                raise PaymentNotFoundError(provider_payment_id, self.provider) from exc
            raise PaymentRetrievalError(
                provider_payment_id,
                exc.message,
                provider=self.provider,
                provider_code=exc.provider_code,
                cause=exc,
            ) from exc
        except httpx.HTTPError as exc:
            raise PaymentRetrievalError(
                provider_payment_id, str(exc) or "transport error", provider=self.provider, cause=exc
            ) from exc

    async def _get_payment_link(self, link_id: str) -> Payment:
        link = await self._request("GET", f"/payment_links/{link_id}")
        created_at = from_unix(link.get("created_at"))
        customer = link.get("customer") or None
        return Payment(
            provider=self.provider,
            provider_payment_id=link["id"],
            unipay_id=create_unipay_id(self.provider, link["id"]),
            status=self._map_status("payment_link", link.get("status")),
            money=Money(amount=coerce_amount(link.get("amount")), currency=link.get("currency") or "INR"),
            amount_refunded=None,
            created_at=created_at,
            updated_at=from_unix(link["updated_at"]) if link.get("updated_at") else created_at,
            customer=CustomerInfo(
                name=customer.get("name"),
                email=customer.get("email"),
                phone=_opt_str(customer.get("contact")),
            )
            if customer
            else None,
            metadata=_notes(link.get("notes")),
            raw=link,
        )

    async def _first_order_payment(self, order_id: str) -> Optional[dict[str, Any]]:
        payments = await self._request("GET", f"/orders/{order_id}/payments")
        items = payments.get("items") or []
        return items[0] if items else None

    async def _get_order(self, order_id: str) -> Payment:
        order = await self._request("GET", f"/orders/{order_id}")
        payment = await self._first_order_payment(order_id)
        created_at = from_unix(order.get("created_at"))
        status = self._map_status("order", order.get("status"))
        return Payment(
            provider=self.provider,
            provider_payment_id=order["id"],
            unipay_id=create_unipay_id(self.provider, order["id"]),
            status=status,
            money=Money(amount=coerce_amount(order.get("amount")), currency=order.get("currency") or "INR"),
            amount_refunded=coerce_amount(payment.get("amount_refunded")) if payment else 0,
            created_at=created_at,
            updated_at=created_at,
            captured_at=created_at if status == PaymentStatus.SUCCEEDED else None,
            customer=CustomerInfo(email=payment.get("email"), phone=_opt_str(payment.get("contact")))
            if payment
            else None,
            metadata=_notes(order.get("notes")),
            failure_reason=payment.get("error_description") if payment else None,
            failure_code=payment.get("error_code") if payment else None,
            raw={"order": order, "payment": payment},
        )

    async def _get_payment_by_id(self, payment_id: str) -> Payment:
        payment = await self._request("GET", f"/payments/{payment_id}")
        created_at = from_unix(payment.get("created_at"))
        return Payment(
            provider=self.provider,
            provider_payment_id=payment["id"],
            unipay_id=create_unipay_id(self.provider, payment["id"]),
            status=self._map_status("payment", payment.get("status")),
            money=Money(amount=coerce_amount(payment.get("amount")), currency=payment.get("currency") or "INR"),
            amount_refunded=coerce_amount(payment.get("amount_refunded")),
            created_at=created_at,
            updated_at=created_at,
            captured_at=created_at if payment.get("captured") else None,
            customer=CustomerInfo(email=payment.get("email"), phone=_opt_str(payment.get("contact"))),
            metadata=_notes(payment.get("notes")),
            failure_reason=payment.get("error_description"),
            failure_code=payment.get("error_code"),
            raw=payment,
        )

    # -- refunds ----------------------------------------------------------

    def _to_refund(self, refund: dict[str, Any], provider_payment_id: str, reason: Optional[str] = None) -> Refund:
        return Refund(
            provider=self.provider,
            provider_refund_id=refund["id"],
            provider_payment_id=provider_payment_id,
            unipay_id=create_unipay_id(self.provider, refund["id"]),
            status=self._map_refund_status(refund.get("status")),
            money=Money(amount=coerce_amount(refund.get("amount")), currency=refund.get("currency") or "INR"),
            created_at=from_unix(refund.get("created_at")),
            reason=reason,
            raw=refund,
        )

    async def create_refund(self, provider_payment_id: str, input: Optional[CreateRefundInput] = None) -> Refund:
        try:
            payment_id = provider_payment_id
            if provider_payment_id.startswith("order_"):
                payment = await self._first_order_payment(provider_payment_id)
                if payment is None:
                    raise RefundCreationError(
                        "No payment found for this order",
                        provider=self.provider,
                        provider_payment_id=provider_payment_id,
                    )
                payment_id = payment["id"]
            elif provider_payment_id.startswith("plink_"):
                raise RefundCreationError(
                    "Refunds for payment links must use the payment ID (pay_...)",
                    provider=self.provider,
                    provider_payment_id=provider_payment_id,
                )

            body: dict[str, Any] = {}
            if input is not None and input.amount:
                body["amount"] = input.amount
            if input is not None and input.metadata:
                body["notes"] = input.metadata
            refund = await self._request("POST", f"/payments/{payment_id}/refund", json=body)
        except ProviderAPIError as exc:
            raise RefundCreationError(
                exc.message,
                provider=self.provider,
                provider_code=exc.provider_code,
                provider_payment_id=provider_payment_id,
                cause=exc,
            ) from exc
        except httpx.HTTPError as exc:
            raise RefundCreationError(
                str(exc) or "Refund creation failed",
                provider=self.provider,
                provider_payment_id=provider_payment_id,
                cause=exc,
            ) from exc
        self._log("razorpay_refund_created", provider_refund_id=refund["id"], provider_payment_id=payment_id)
        return self._to_refund(refund, provider_payment_id, input.reason if input else None)

    async def get_refund(self, provider_refund_id: str) -> Refund:
        try:
            refund = await self._request("GET", f"/refunds/{provider_refund_id}")
        except ProviderAPIError as exc:
            if self._is_missing(exc):
                raise RefundNotFoundError(provider_refund_id, self.provider) from exc
            raise RefundRetrievalError(
                provider_refund_id,
                exc.message,
                provider=self.provider,
                provider_code=exc.provider_code,
                cause=exc,
            ) from exc
        return self._to_refund(refund, refund.get("payment_id") or "")

    async def list_refunds(self, provider_payment_id: str) -> RefundList:
        try:
            payment_id = provider_payment_id
            if provider_payment_id.startswith("order_"):
                payment = await self._first_order_payment(provider_payment_id)
                if payment is None:
                    return RefundList(refunds=[], has_more=False)
                payment_id = payment["id"]
            response = await self._request("GET", f"/payments/{payment_id}/refunds")
        except ProviderAPIError as exc:
            raise RefundRetrievalError(
                provider_payment_id,
                exc.message,
                provider=self.provider,
                provider_code=exc.provider_code,
                cause=exc,
            ) from exc
        refunds = [self._to_refund(item, provider_payment_id) for item in response.get("items") or []]
        return RefundList(refunds=refunds, has_more=False)

    # -- webhooks ---------------------------------------------------------

    def verify_webhook_signature(self, request: WebhookRequest, config: WebhookConfig) -> WebhookVerificationResult:
        signature = get_header(request.headers, SIGNATURE_HEADER)
        if not signature:
            return WebhookVerificationResult(is_valid=False, error=f"Missing {SIGNATURE_HEADER.lower()} header")
        return verify_hmac_sha256(request.raw_body, signature, config.signing_secret)

    def parse_webhook_event(self, request: WebhookRequest) -> WebhookEvent:
        try:
            body = json.loads(request.raw_body)
        except ValueError as exc:
            raise WebhookParsingError(self.provider, f"Invalid JSON body: {exc}", exc) from exc
        if not isinstance(body, dict) or not isinstance(body.get("event"), str):
            raise WebhookParsingError(self.provider, "Missing 'event' field")

        event_name = body["event"]
        payload = body.get("payload") if isinstance(body.get("payload"), dict) else {}
        entity_id = (
            _entity(payload, "payment").get("id")
            or _entity(payload, "refund").get("id")
            or _entity(payload, "order").get("id")
        )
        created_at = coerce_amount(body.get("created_at"))
        try:
            return WebhookEvent(
                provider=self.provider,
                event_type=map_event_type(self.provider.value, event_name),
                provider_event_id=str(entity_id or f"evt_{int(time.time() * 1000)}"),
                provider_event_type=event_name,
                timestamp=from_unix(created_at) if created_at else datetime.now(timezone.utc),
                payload=self._parse_payload(event_name, body, payload),
                raw=body,
            )
        except (TypeError, ValueError) as exc:
            raise WebhookParsingError(self.provider, str(exc), exc) from exc

    def _parse_payload(self, event_name: str, body: dict[str, Any], payload: dict[str, Any]):
        if not payload:
            return UnknownWebhookPayload(data=body)

        if event_name.startswith("payment.") or event_name == "order.paid":
            payment = _entity(payload, "payment")
            if payment:
                return PaymentWebhookPayload(
                    provider_payment_id=str(payment.get("id") or ""),
                    status=self._map_status("payment", str(payment.get("status") or "")),
                    money=Money(
                        amount=coerce_amount(payment.get("amount")),
                        currency=str(payment.get("currency") or "INR"),
                    ),
                    metadata=_notes(payment.get("notes")),
                    failure_reason=_opt_str(payment.get("error_description")),
                    failure_code=_opt_str(payment.get("error_code")),
                )
            order = _entity(payload, "order")
            if order:
                return PaymentWebhookPayload(
                    provider_payment_id=str(order.get("id") or ""),
                    status=PaymentStatus.SUCCEEDED,
                    money=Money(
                        amount=coerce_amount(order.get("amount")),
                        currency=str(order.get("currency") or "INR"),
                    ),
                    metadata=_notes(order.get("notes")),
                )

        if event_name.startswith("refund."):
            refund = _entity(payload, "refund")
            if refund:
                return RefundWebhookPayload(
                    provider_refund_id=str(refund.get("id") or ""),
                    provider_payment_id=str(refund.get("payment_id") or ""),
                    status=self._map_refund_status(str(refund.get("status") or "")),
                    money=Money(
                        amount=coerce_amount(refund.get("amount")),
                        currency=str(refund.get("currency") or "INR"),
                    ),
                )

        return UnknownWebhookPayload(data=payload)


def _entity(payload: dict[str, Any], name: str) -> dict[str, Any]:
    wrapper = payload.get(name)
    if isinstance(wrapper, dict) and isinstance(wrapper.get("entity"), dict):
        return wrapper["entity"]
    return {}
