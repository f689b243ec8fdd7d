import hashlib
import hmac

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_orchestrator
from application.dtos.payments import ResolutionConfig, WebhookConfig
from application.services.payment_orchestrator import create_payment_client
from core.settings import PaymentSettings, RazorpaySettings, StripeSettings
from domain.payment.enums import AdapterCapability, PaymentProvider
from main import app


WEBHOOK_SECRET = "whsec_api"


def _payment_body(amount=1000, currency="USD", **extra):
    body = {
        "money": {"amount": amount, "currency": currency},
        "success_url": "https://shop.example.com/success",
        "cancel_url": "https://shop.example.com/cancel",
    }
    body.update(extra)
    return body


@pytest.fixture
def adapters(stub_adapter):
    return [
        stub_adapter(PaymentProvider.STRIPE, currencies=("USD", "EUR")),
        stub_adapter(
            PaymentProvider.RAZORPAY,
            currencies=("INR",),
            capabilities={AdapterCapability.HOSTED_CHECKOUT, AdapterCapability.FULL_REFUND},
        ),
    ]


@pytest.fixture
def client(adapters):
    orchestrator = create_payment_client(
        adapters,
        resolution=ResolutionConfig(strategy="by-currency"),
        webhook_configs=[WebhookConfig(provider=PaymentProvider.STRIPE, signing_secret=WEBHOOK_SECRET)],
    )
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_create_payment(client):
    resp = client.post("/api/v1/payments", json=_payment_body(currency="INR"))
    assert resp.status_code == 200
    body = resp.json()
    assert body["code"] == "SUCCESS"
    assert body["data"]["checkout_mode"] == "hosted"
    assert body["data"]["unipay_id"].startswith("razorpay:")
    assert "raw" not in body["data"]
    assert resp.headers["X-Request-ID"]


def test_create_payment_with_explicit_provider(client):
    resp = client.post("/api/v1/payments", json=_payment_body(provider="stripe"))
    assert resp.status_code == 200
    assert resp.json()["data"]["provider"] == "stripe"


@pytest.mark.parametrize(
    "body, status, code",
    [
        (_payment_body(amount=0), 400, "INVALID_AMOUNT"),
        (_payment_body(currency="US"), 400, "INVALID_CURRENCY"),
        (_payment_body(success_url="ftp://shop.example.com"), 400, "INVALID_URL"),
        (_payment_body(currency="GBP"), 422, "NO_PROVIDER_AVAILABLE"),
        (_payment_body(currency="INR", preferred_checkout_mode="sdk"), 422, "UNSUPPORTED_CHECKOUT_MODE"),
        (_payment_body(provider="payu"), 404, "PROVIDER_NOT_FOUND"),
    ],
)
def test_create_payment_errors(client, body, status, code):
    resp = client.post("/api/v1/payments", json=body)
    assert resp.status_code == status
    payload = resp.json()
    assert payload["code"] == code
    assert payload["data"] is None
    assert payload["error"]["request_id"] == resp.headers["X-Request-ID"]


def test_request_validation_error(client):
    resp = client.post("/api/v1/payments", json={"money": {"amount": 100, "currency": "USD"}})
    assert resp.status_code == 422
    assert resp.json()["code"] == "MISSING_REQUIRED_FIELD"


def test_get_payment(client):
    resp = client.get("/api/v1/payments/stripe:pi_42")
    assert resp.status_code == 200
    assert resp.json()["data"]["provider_payment_id"] == "pi_42"


def test_get_payment_invalid_id(client):
    resp = client.get("/api/v1/payments/not-a-unipay-id")
    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_UNIPAY_ID"


def test_refunds(client):
    resp = client.post("/api/v1/payments/stripe:pi_1/refunds", json={"amount": 300})
    assert resp.status_code == 200
    assert resp.json()["data"]["money"]["amount"] == 300

    resp = client.post("/api/v1/payments/stripe:pi_1/refunds")
    assert resp.status_code == 200
    assert resp.json()["data"]["money"]["amount"] == 1000

    resp = client.get("/api/v1/payments/stripe:pi_1/refunds")
    assert resp.json()["data"]["has_more"] is False
    assert len(resp.json()["data"]["refunds"]) == 1

    resp = client.get("/api/v1/payments/refunds/stripe/re_7")
    assert resp.json()["data"]["provider_refund_id"] == "re_7"


def test_partial_refund_not_supported(client):
    resp = client.post("/api/v1/payments/razorpay:pay_1/refunds", json={"amount": 300})
    assert resp.status_code == 422
    assert resp.json()["code"] == "PARTIAL_REFUND_NOT_SUPPORTED"
    assert resp.json()["error"]["provider"] == "razorpay"


def test_list_providers(client):
    resp = client.get("/api/v1/payments/providers")
    data = resp.json()["data"]
    assert [p["provider"] for p in data] == ["stripe", "razorpay"]
    assert "USD" in data[0]["capabilities"]["supported_currencies"]


def test_webhook(client):
    raw = b'{"id": "evt_1"}'
    signature = hmac.new(WEBHOOK_SECRET.encode(), raw, hashlib.sha256).hexdigest()
    resp = client.post("/api/v1/payments/webhooks/stripe", content=raw, headers={"X-Stub-Signature": signature})
    assert resp.status_code == 200
    assert resp.json()["data"]["event_type"] == "payment.succeeded"


def test_webhook_errors(client):
    resp = client.post("/api/v1/payments/webhooks/stripe", content=b"{}", headers={"X-Stub-Signature": "nope"})
    assert resp.status_code == 401
    assert resp.json()["code"] == "WEBHOOK_SIGNATURE_INVALID"

    resp = client.post("/api/v1/payments/webhooks/razorpay", content=b"{}")
    assert resp.status_code == 404
    assert resp.json()["code"] == "WEBHOOK_PROVIDER_NOT_CONFIGURED"


def test_webhook_non_utf8_body(client):
    resp = client.post("/api/v1/payments/webhooks/stripe", content=b"\xff\xfe\x00", headers={"X-Stub-Signature": "x"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "WEBHOOK_PARSING_FAILED"


def test_lifespan_builds_orchestrator_from_settings(monkeypatch):
    monkeypatch.setattr(app.state, "payments", None, raising=False)
    settings = PaymentSettings(
        stripe=StripeSettings(enabled=True, secret_key="sk_test_lifespan", webhook_secret="whsec_x"),
        razorpay=RazorpaySettings(),
    )
    monkeypatch.setattr("main.payment_settings", settings)
    with TestClient(app) as client:
        assert client.app.state.payments.get_registered_providers() == [PaymentProvider.STRIPE]
        resp = client.get("/api/v1/payments/providers")
        assert [p["provider"] for p in resp.json()["data"]] == ["stripe"]


def test_lifespan_without_providers(monkeypatch):
    monkeypatch.setattr(app.state, "payments", None, raising=False)
    monkeypatch.setattr("main.payment_settings", PaymentSettings(stripe=StripeSettings(), razorpay=RazorpaySettings()))
    with TestClient(app) as client:
        assert client.app.state.payments is None
        assert client.get("/api/v1/payments/providers").status_code == 503


def test_unconfigured_service_returns_503(monkeypatch):
    monkeypatch.setattr(app.state, "payments", None, raising=False)
    resp = TestClient(app).get("/api/v1/payments/providers")
    assert resp.status_code == 503
    assert resp.json()["code"] == "HTTP_ERROR"


def test_health():
    resp = TestClient(app).get("/health")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"status": "healthy"}
