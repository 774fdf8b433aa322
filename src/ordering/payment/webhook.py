"""Webhook processing for payment processor events.

A delivery goes through four steps:

1. verify the signature over the raw body (nothing is recorded for a
   delivery that fails verification)
2. claim the ledger record for ``(provider, event id)``: create it, or count
   another attempt on it
3. apply the event to its order through an Order command, unless the record
   says it was already processed
4. stamp the record processed, or store the error and ask the processor to
   redeliver

Deliveries of the same event are serialized in-process for the whole claim,
apply and mark sequence.
"""

import threading
from zlib import crc32

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from notifications.notifier import notify
from ordering.domain import logger
from ordering.order.order import Order, PaymentOutcome
from ordering.order.payment import ConfirmPayment, RecordPaymentFailure, RecordRefund
from ordering.payment.webhook_event import WebhookEvent, ledger_key
from ordering.utils.logging import add_context, clear_context
from payments.gateway import get_gateway
from payments.gateway.port import PaymentGateway, ProviderEvent
from shared.config import get_settings
from shared.errors import SignatureInvalid, TransientProcessorError

PAYMENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_FAILED = "payment_intent.payment_failed"
CHARGE_REFUNDED = "charge.refunded"

_LOCK_STRIPES = 64
_locks = [threading.Lock() for _ in range(_LOCK_STRIPES)]


def _lock_for(key: str) -> threading.Lock:
    return _locks[crc32(key.encode()) % _LOCK_STRIPES]


def _order_reference(data: dict) -> str | None:
    metadata = data.get("metadata") or {}
    order_id = metadata.get("order_id") or metadata.get("orderId")
    return str(order_id) if order_id else None


def _first_charge(data: dict) -> dict:
    charges = (data.get("charges") or {}).get("data") or []
    return charges[0] if charges else {}


class WebhookProcessor:
    def __init__(
        self,
        gateway: PaymentGateway | None = None,
        retention_days: int | None = None,
    ) -> None:
        self.gateway = gateway or get_gateway()
        self.provider = self.gateway.provider
        self.retention_days = retention_days or get_settings().webhook_retention_days

    def handle(self, payload: bytes, signature: str | None) -> dict:
        """Process one delivery. Returns the acknowledgment body.

        Raises:
            SignatureInvalid: missing or bad signature (no ledger entry).
            ValidationError: the verified event carries no id.
            TransientProcessorError: the event could not be applied; the
                provider should redeliver.
        """
        if not signature:
            raise SignatureInvalid("Missing signature header")

        event = self.gateway.verify_and_parse_event(payload, signature)
        if not event.id:
            raise ValidationError({"id": ["Webhook event id is missing"]})

        key = ledger_key(self.provider, event.id)
        add_context(webhook_event=key, event_type=event.type)
        try:
            with _lock_for(key):
                record = self._claim(key, event)
                if record.is_processed:
                    logger.info("webhook_duplicate_ignored", attempts=record.attempts)
                    return {"received": True, "duplicate": True}

                try:
                    outcome = self._apply(event)
                except Exception as exc:
                    logger.exception("webhook_handler_failed")
                    self._record_error(key, exc)
                    raise TransientProcessorError("Failed to process event") from exc

                self._mark_processed(key)

            logger.info("webhook_processed", outcome=outcome)
            try:
                self._after_commit(event, outcome)
            except Exception:
                # Already processed; a failed follow-up must not trigger redelivery
                logger.exception("webhook_follow_up_failed")
            return {"received": True}
        finally:
            clear_context()

    # -------------------------------------------------------------------
    # Ledger
    # -------------------------------------------------------------------
    def _claim(self, key: str, event: ProviderEvent) -> WebhookEvent:
        repo = current_domain.repository_for(WebhookEvent)
        order_id = _order_reference(event.data)
        try:
            try:
                record = repo.get(key)
            except ObjectNotFoundError:
                record = WebhookEvent.receive(
                    provider=self.provider,
                    event_id=event.id,
                    event_type=event.type,
                    related_order_id=order_id,
                    retention_days=self.retention_days,
                )
            else:
                record.register_attempt(event.type, related_order_id=order_id)
            repo.add(record)
        except Exception as exc:
            logger.exception("webhook_ledger_write_failed")
            raise TransientProcessorError("Failed to record event") from exc
        return record

    def _mark_processed(self, key: str) -> None:
        repo = current_domain.repository_for(WebhookEvent)
        record = repo.get(key)
        record.mark_processed()
        repo.add(record)

    def _record_error(self, key: str, exc: Exception) -> None:
        repo = current_domain.repository_for(WebhookEvent)
        try:
            record = repo.get(key)
            record.record_error(str(exc) or type(exc).__name__)
            repo.add(record)
        except Exception:
            # The delivery is already failing; the redelivery will retry the write
            logger.exception("webhook_error_not_recorded")

    # -------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------
    def _apply(self, event: ProviderEvent) -> str:
        data = event.data or {}
        if event.type == PAYMENT_SUCCEEDED:
            return self._payment_succeeded(data)
        if event.type == PAYMENT_FAILED:
            return self._payment_failed(data)
        if event.type == CHARGE_REFUNDED:
            return self._charge_refunded(data)
        return "unhandled"

    def _payment_succeeded(self, data: dict) -> str:
        order_id = _order_reference(data)
        if not order_id:
            return "no_order"

        charge = _first_charge(data)
        latest_charge = data.get("latest_charge")
        method_types = data.get("payment_method_types") or []
        return current_domain.process(
            ConfirmPayment(
                order_id=order_id,
                intent_id=data.get("id"),
                amount_received=data.get("amount_received"),
                currency=data.get("currency"),
                charge_id=charge.get("id") or (latest_charge if isinstance(latest_charge, str) else None),
                receipt_url=charge.get("receipt_url"),
                payment_method=method_types[0] if method_types else None,
            ),
            asynchronous=False,
        )

    def _payment_failed(self, data: dict) -> str:
        order_id = _order_reference(data)
        if not order_id:
            return "no_order"

        error = data.get("last_payment_error") or {}
        return current_domain.process(
            RecordPaymentFailure(
                order_id=order_id,
                intent_id=data.get("id"),
                reason=error.get("message") or "Payment failed",
            ),
            asynchronous=False,
        )

    def _charge_refunded(self, data: dict) -> str:
        intent_id = data.get("payment_intent")
        if not intent_id:
            return "no_order"

        refunds = (data.get("refunds") or {}).get("data") or []
        return current_domain.process(
            RecordRefund(
                intent_id=intent_id,
                amount=data.get("amount_refunded"),
                reason=refunds[0].get("reason") if refunds else None,
                charge_id=data.get("id"),
            ),
            asynchronous=False,
        )

    # -------------------------------------------------------------------
    # Side effects
    # -------------------------------------------------------------------
    def _after_commit(self, event: ProviderEvent, outcome: str) -> None:
        if event.type != PAYMENT_SUCCEEDED or outcome != PaymentOutcome.PAID.value:
            return
        order = current_domain.repository_for(Order).get(_order_reference(event.data))
        notify(
            "payment_received",
            order.customer_email,
            {
                "order_number": order.order_number,
                "amount": order.pricing.total_price,
                "currency": order.payment.currency,
                "receipt_url": order.payment.receipt_url,
            },
        )
