"""WebhookEvent aggregate: the ledger of processor deliveries.

One record per ``(provider, event id)``. A record is written (claimed) before
the event is applied and stamped ``processed_at`` only after the order change
has been committed, so a crash in between leaves an unprocessed record that
the processor's redelivery will pick up again.
"""

from datetime import UTC, datetime, timedelta

from protean.fields import DateTime, Identifier, Integer, String

from ordering.domain import ordering

DEFAULT_RETENTION_DAYS = 90


def ledger_key(provider: str, event_id: str) -> str:
    return f"{provider}:{event_id}"


@ordering.aggregate
class WebhookEvent:
    event_key = String(identifier=True, max_length=300)
    provider = String(required=True, max_length=50)
    event_id = String(required=True, max_length=255)
    event_type = String(max_length=100)
    related_order_id = Identifier()
    received_at = DateTime(required=True)
    last_seen_at = DateTime()
    attempts = Integer(default=0, min_value=0)
    processed_at = DateTime()
    last_error = String(max_length=2000)
    expires_at = DateTime()

    @classmethod
    def receive(cls, provider, event_id, event_type, related_order_id=None, retention_days=DEFAULT_RETENTION_DAYS):
        now = datetime.now(UTC)
        return cls(
            event_key=ledger_key(provider, event_id),
            provider=provider,
            event_id=event_id,
            event_type=event_type,
            related_order_id=related_order_id,
            received_at=now,
            last_seen_at=now,
            attempts=1,
            expires_at=now + timedelta(days=retention_days),
        )

    @property
    def is_processed(self) -> bool:
        return self.processed_at is not None

    def register_attempt(self, event_type, related_order_id=None):
        self.event_type = event_type
        if related_order_id:
            self.related_order_id = related_order_id
        self.last_seen_at = datetime.now(UTC)
        self.attempts = (self.attempts or 0) + 1

    def mark_processed(self):
        self.processed_at = datetime.now(UTC)
        self.last_error = None

    def record_error(self, message):
        self.last_error = (message or "Handler failure")[:2000]
