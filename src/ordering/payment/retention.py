"""Webhook ledger retention: command and handler."""

from datetime import UTC, datetime

from protean import handle
from protean.fields import DateTime
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering
from ordering.payment.webhook_event import WebhookEvent

_BATCH_SIZE = 100


@ordering.command(part_of="WebhookEvent")
class PurgeExpiredWebhookEvents:
    as_of = DateTime()  # defaults to now


@ordering.command_handler(part_of=WebhookEvent)
class WebhookRetentionHandler:
    @handle(PurgeExpiredWebhookEvents)
    def purge(self, command):
        cutoff = command.as_of or datetime.now(UTC)
        repo = current_domain.repository_for(WebhookEvent)

        expired = []
        offset = 0
        while True:
            batch = repo._dao.query.filter(expires_at__lte=cutoff).offset(offset).limit(_BATCH_SIZE).all()
            expired.extend(batch.items)
            offset += _BATCH_SIZE
            if offset >= batch.total:
                break

        for record in expired:
            repo._dao.delete(record)
        purged = len(expired)

        logger.info("webhook_events_purged", count=purged, cutoff=cutoff.isoformat())
        return purged
