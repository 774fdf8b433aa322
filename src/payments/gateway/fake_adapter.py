"""Configurable fake payment gateway for development and testing.

This adapter simulates the processor without any external calls. Webhook
payloads are signed the way Stripe signs them (``t=<ts>,v1=<hmac-sha256>``
over ``"<ts>.<body>"``), so tests exercise the real verification path.
"""

import hashlib
import hmac
import json
import time
from uuid import uuid4

from payments.gateway.port import PaymentGateway, PaymentIntent, ProviderEvent
from shared.errors import SignatureInvalid, TransientProcessorError

DEFAULT_WEBHOOK_SECRET = "whsec_fake"
SIGNATURE_TOLERANCE_SECONDS = 300


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, webhook_secret: str = DEFAULT_WEBHOOK_SECRET) -> None:
        self.webhook_secret = webhook_secret
        self.should_succeed: bool = True
        self.failure_reason: str = "Processor unavailable"
        self.calls: list[dict] = []
        self._intents_by_key: dict[str, PaymentIntent] = {}

    def configure(self, should_succeed: bool, failure_reason: str = "Processor unavailable") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_intent(
        self,
        amount: int,
        currency: str,
        idempotency_key: str,
        metadata: dict | None = None,
    ) -> PaymentIntent:
        self.calls.append(
            {
                "method": "create_intent",
                "amount": amount,
                "currency": currency,
                "idempotency_key": idempotency_key,
                "metadata": dict(metadata or {}),
            }
        )
        if not self.should_succeed:
            raise TransientProcessorError(self.failure_reason)

        # Same key, same intent
        if idempotency_key in self._intents_by_key:
            return self._intents_by_key[idempotency_key]

        intent_id = f"pi_fake_{uuid4().hex[:16]}"
        intent = PaymentIntent(
            id=intent_id,
            client_secret=f"{intent_id}_secret_{uuid4().hex[:8]}",
            amount=amount,
            currency=currency,
        )
        self._intents_by_key[idempotency_key] = intent
        return intent

    # -------------------------------------------------------------------
    # Webhooks
    # -------------------------------------------------------------------
    def sign(self, payload: bytes, timestamp: int | None = None) -> str:
        """Produce the signature header a real delivery would carry."""
        timestamp = int(time.time()) if timestamp is None else timestamp
        signed = f"{timestamp}.".encode() + payload
        digest = hmac.new(self.webhook_secret.encode(), signed, hashlib.sha256).hexdigest()
        return f"t={timestamp},v1={digest}"

    @staticmethod
    def build_event(event_type: str, data_object: dict, event_id: str | None = None) -> bytes:
        """Serialize an event body shaped like the processor's."""
        body = {
            "id": event_id if event_id is not None else f"evt_fake_{uuid4().hex[:16]}",
            "object": "event",
            "type": event_type,
            "created": int(time.time()),
            "data": {"object": data_object},
        }
        return json.dumps(body).encode()

    def verify_and_parse_event(self, payload: bytes, signature: str) -> ProviderEvent:
        self.calls.append({"method": "verify_and_parse_event", "signature": signature})

        parts = dict(item.split("=", 1) for item in (signature or "").split(",") if "=" in item)
        timestamp, received = parts.get("t"), parts.get("v1")
        if not timestamp or not received or not timestamp.isdigit():
            raise SignatureInvalid("Malformed signature header")
        if abs(time.time() - int(timestamp)) > SIGNATURE_TOLERANCE_SECONDS:
            raise SignatureInvalid("Signature timestamp outside tolerance")

        expected = self.sign(payload, int(timestamp)).split("v1=", 1)[1]
        if not hmac.compare_digest(expected, received):
            raise SignatureInvalid()

        try:
            body = json.loads(payload)
        except ValueError as exc:
            raise SignatureInvalid("Webhook payload is not valid JSON") from exc

        return ProviderEvent(
            id=body.get("id"),
            type=body.get("type", ""),
            data=(body.get("data") or {}).get("object") or {},
            created=body.get("created"),
        )

    def reset(self) -> None:
        self.calls.clear()
        self._intents_by_key.clear()
        self.should_succeed = True
        self.failure_reason = "Processor unavailable"
