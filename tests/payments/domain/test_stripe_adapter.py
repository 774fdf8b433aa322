"""Tests for the Stripe adapter with the SDK calls stubbed out."""

import json
from types import SimpleNamespace

import pytest
import stripe
from payments.gateway.stripe_adapter import StripeGateway
from shared.errors import SignatureInvalid, TransientProcessorError


@pytest.fixture()
def gateway():
    return StripeGateway(api_key="sk_test_123", webhook_secret="whsec_123", timeout=5.0)


class TestCreateIntent:
    def test_passes_idempotency_key(self, gateway, monkeypatch):
        captured = {}

        def _create(**kwargs):
            captured.update(kwargs)
            return SimpleNamespace(
                id="pi_123",
                client_secret="pi_123_secret",
                amount=kwargs["amount"],
                currency=kwargs["currency"],
                status="requires_payment_method",
            )

        monkeypatch.setattr(stripe.PaymentIntent, "create", _create)
        intent = gateway.create_intent(5900, "usd", "pi:create:o1:5900:usd", metadata={"order_id": "o1"})

        assert intent.id == "pi_123"
        assert intent.client_secret == "pi_123_secret"
        assert captured["idempotency_key"] == "pi:create:o1:5900:usd"
        assert captured["api_key"] == "sk_test_123"
        assert captured["metadata"] == {"order_id": "o1"}

    def test_processor_error(self, gateway, monkeypatch):
        def _create(**kwargs):
            raise stripe.StripeError("connection reset")

        monkeypatch.setattr(stripe.PaymentIntent, "create", _create)
        with pytest.raises(TransientProcessorError):
            gateway.create_intent(5900, "usd", "key")

    def test_no_sdk_retries(self, gateway):
        assert stripe.max_network_retries == 0


class TestVerifyEvent:
    def test_verified_event_is_parsed(self, gateway, monkeypatch):
        monkeypatch.setattr(stripe.Webhook, "construct_event", lambda payload, sig, secret: None)
        payload = json.dumps(
            {"id": "evt_1", "type": "payment_intent.succeeded", "created": 1, "data": {"object": {"id": "pi_1"}}}
        ).encode()

        event = gateway.verify_and_parse_event(payload, "t=1,v1=abc")
        assert event.id == "evt_1"
        assert event.data == {"id": "pi_1"}

    def test_bad_signature(self, gateway, monkeypatch):
        def _construct(payload, sig, secret):
            raise stripe.SignatureVerificationError("No signatures found", sig)

        monkeypatch.setattr(stripe.Webhook, "construct_event", _construct)
        with pytest.raises(SignatureInvalid):
            gateway.verify_and_parse_event(b"{}", "t=1,v1=bad")

    def test_invalid_payload(self, gateway, monkeypatch):
        def _construct(payload, sig, secret):
            raise ValueError("Invalid payload")

        monkeypatch.setattr(stripe.Webhook, "construct_event", _construct)
        with pytest.raises(SignatureInvalid):
            gateway.verify_and_parse_event(b"nope", "t=1,v1=bad")
