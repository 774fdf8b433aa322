"""Stripe payment gateway adapter.

Uses the stripe-python SDK for PaymentIntents and webhook signature
verification. Network retries are left to the caller (the webhook provider
redelivers, the client re-requests an intent with the same idempotency key).
"""

import json

import stripe
import structlog

from payments.gateway.port import PaymentGateway, PaymentIntent, ProviderEvent
from shared.errors import SignatureInvalid, TransientProcessorError

logger = structlog.get_logger(__name__)


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    provider = "stripe"

    def __init__(self, api_key: str, webhook_secret: str, timeout: float = 10.0) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        stripe.max_network_retries = 0
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout)

    def create_intent(
        self,
        amount: int,
        currency: str,
        idempotency_key: str,
        metadata: dict | None = None,
    ) -> PaymentIntent:
        try:
            intent = stripe.PaymentIntent.create(
                amount=amount,
                currency=currency,
                metadata=metadata or {},
                automatic_payment_methods={"enabled": True},
                idempotency_key=idempotency_key,
                api_key=self.api_key,
            )
        except stripe.StripeError as exc:
            logger.error(
                "stripe_intent_create_failed",
                idempotency_key=idempotency_key,
                error=str(exc),
                http_status=getattr(exc, "http_status", None),
            )
            raise TransientProcessorError(exc.user_message or "Payment processor error") from exc

        return PaymentIntent(
            id=intent.id,
            client_secret=intent.client_secret,
            amount=intent.amount,
            currency=intent.currency,
            status=intent.status,
        )

    def verify_and_parse_event(self, payload: bytes, signature: str) -> ProviderEvent:
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except ValueError as exc:
            raise SignatureInvalid("Webhook payload is not valid JSON") from exc
        except stripe.SignatureVerificationError as exc:
            raise SignatureInvalid() from exc

        # Work with plain dicts from the verified body
        body = json.loads(payload)
        return ProviderEvent(
            id=body.get("id"),
            type=body.get("type", ""),
            data=(body.get("data") or {}).get("object") or {},
            created=body.get("created"),
        )
