from core.logging_config import REDACTED, redact_secrets


def test_secret_keys_are_masked():
    event = redact_secrets(
        None,
        "info",
        {"event": "payment_webhook", "signing_secret": "whsec_123", "Authorization": "Basic abc", "provider": "stripe"},
    )
    assert event["signing_secret"] == REDACTED
    assert event["Authorization"] == REDACTED
    assert event["provider"] == "stripe"


def test_empty_values_are_left_alone():
    event = redact_secrets(None, "info", {"event": "x", "secret_key": None})
    assert event["secret_key"] is None
