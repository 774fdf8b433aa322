"""Tests for the fake payment gateway."""

import json
import time

import pytest
from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import PaymentIntent, ProviderEvent
from shared.errors import SignatureInvalid, TransientProcessorError


class TestCreateIntent:
    def test_creates_intent(self):
        gateway = FakeGateway()
        intent = gateway.create_intent(amount=5900, currency="usd", idempotency_key="key-1")
        assert isinstance(intent, PaymentIntent)
        assert intent.amount == 5900
        assert intent.client_secret.startswith(intent.id)

    def test_same_key_same_intent(self):
        gateway = FakeGateway()
        first = gateway.create_intent(amount=5900, currency="usd", idempotency_key="key-1")
        second = gateway.create_intent(amount=5900, currency="usd", idempotency_key="key-1")
        other = gateway.create_intent(amount=5900, currency="usd", idempotency_key="key-2")
        assert first.id == second.id
        assert other.id != first.id
        assert len(gateway.calls) == 3

    def test_configured_failure(self):
        gateway = FakeGateway()
        gateway.configure(should_succeed=False, failure_reason="Processor down")
        with pytest.raises(TransientProcessorError, match="Processor down"):
            gateway.create_intent(amount=5900, currency="usd", idempotency_key="key-1")

    def test_reset(self):
        gateway = FakeGateway()
        gateway.configure(should_succeed=False)
        gateway.reset()
        assert gateway.should_succeed is True
        assert gateway.calls == []


class TestWebhookVerification:
    def test_valid_signature(self):
        gateway = FakeGateway()
        payload = gateway.build_event("payment_intent.succeeded", {"id": "pi_1"}, event_id="evt_1")
        event = gateway.verify_and_parse_event(payload, gateway.sign(payload))
        assert isinstance(event, ProviderEvent)
        assert event.id == "evt_1"
        assert event.type == "payment_intent.succeeded"
        assert event.data == {"id": "pi_1"}

    def test_wrong_secret(self):
        payload = FakeGateway.build_event("payment_intent.succeeded", {})
        signature = FakeGateway(webhook_secret="whsec_other").sign(payload)
        with pytest.raises(SignatureInvalid):
            FakeGateway().verify_and_parse_event(payload, signature)

    def test_malformed_header(self):
        payload = FakeGateway.build_event("payment_intent.succeeded", {})
        with pytest.raises(SignatureInvalid):
            FakeGateway().verify_and_parse_event(payload, "garbage")

    def test_old_timestamp(self):
        gateway = FakeGateway()
        payload = gateway.build_event("payment_intent.succeeded", {})
        with pytest.raises(SignatureInvalid):
            gateway.verify_and_parse_event(payload, gateway.sign(payload, timestamp=int(time.time()) - 600))

    def test_body_must_be_json(self):
        gateway = FakeGateway()
        payload = b"not json"
        with pytest.raises(SignatureInvalid):
            gateway.verify_and_parse_event(payload, gateway.sign(payload))

    def test_event_shape(self):
        body = json.loads(FakeGateway.build_event("charge.refunded", {"id": "ch_1"}))
        assert body["object"] == "event"
        assert body["id"].startswith("evt_fake_")
        assert body["data"]["object"] == {"id": "ch_1"}
