"""
Payments API routes.

Thin HTTP wiring over the PaymentOrchestrator: no gateway SDK details here.
UnipayError subclasses propagate to the handlers in core.exceptions.
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request

from api.dependencies import get_orchestrator
from application.dtos.payments import CreatePaymentInput, CreateRefundInput, WebhookRequest
from application.services.payment_orchestrator import PaymentOrchestrator
from core.logging_config import get_logger
from core.response import success_response
from domain.payment.enums import PaymentProvider
from domain.payment.exceptions import WebhookParsingError


router = APIRouter(prefix="/payments", tags=["Payments"])
logger = get_logger(__name__)

# Gateway payloads can hold SDK objects; clients get the normalized fields only
_EXCLUDE = {"raw"}


class CreatePaymentRequest(CreatePaymentInput):
    """Create-payment body; ``provider`` forces a gateway and skips resolution."""

    provider: Optional[PaymentProvider] = None


@router.post("/webhooks/{provider}", summary="Receive gateway webhook")
async def payments_webhook(
    provider: str,
    request: Request,
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
):
    try:
        raw_body = (await request.body()).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise WebhookParsingError(provider, f"body is not valid UTF-8: {exc}", exc) from exc
    headers = {k: v for k, v in request.headers.items()}
    event = orchestrator.handle_webhook(provider, WebhookRequest(raw_body=raw_body, headers=headers))
    # 200 acknowledges receipt so the gateway stops retrying
    return success_response(
        data=event.model_dump(mode="json", exclude=_EXCLUDE),
        message="Webhook received",
    )


@router.post("", summary="Create payment")
async def create_payment(
    payload: CreatePaymentRequest,
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
):
    input = CreatePaymentInput(**payload.model_dump(exclude={"provider"}))
    result = await orchestrator.create_payment(input, payload.provider)
    return success_response(data=result.model_dump(mode="json", exclude=_EXCLUDE), message="Payment created")


@router.get("/providers", summary="List registered providers")
async def list_providers(orchestrator: PaymentOrchestrator = Depends(get_orchestrator)):
    providers = [
        {
            "provider": provider.value,
            "capabilities": orchestrator.get_provider_capabilities(provider).model_dump(mode="json"),
        }
        for provider in orchestrator.get_registered_providers()
    ]
    return success_response(data=providers)


@router.get("/refunds/{provider}/{provider_refund_id}", summary="Get refund")
async def get_refund(
    provider: str,
    provider_refund_id: str,
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
):
    refund = await orchestrator.get_refund(provider, provider_refund_id)
    return success_response(data=refund.model_dump(mode="json", exclude=_EXCLUDE))


@router.get("/{unipay_id}", summary="Get payment")
async def get_payment(unipay_id: str, orchestrator: PaymentOrchestrator = Depends(get_orchestrator)):
    payment = await orchestrator.get_payment(unipay_id)
    return success_response(data=payment.model_dump(mode="json", exclude=_EXCLUDE))


@router.post("/{unipay_id}/refunds", summary="Create refund")
async def create_refund(
    unipay_id: str,
    payload: Optional[CreateRefundInput] = None,
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
):
    refund = await orchestrator.create_refund(unipay_id, payload)
    return success_response(data=refund.model_dump(mode="json", exclude=_EXCLUDE), message="Refund created")


@router.get("/{unipay_id}/refunds", summary="List refunds")
async def list_refunds(unipay_id: str, orchestrator: PaymentOrchestrator = Depends(get_orchestrator)):
    refunds = await orchestrator.list_refunds(unipay_id)
    return success_response(
        data={
            "refunds": [r.model_dump(mode="json", exclude=_EXCLUDE) for r in refunds.refunds],
            "has_more": refunds.has_more,
        }
    )
