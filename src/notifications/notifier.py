"""Fire-and-forget customer notifications.

Mail is a side effect of checkout and payment, never part of them: every
failure is logged here and reported as ``False``, nothing propagates.
"""

import structlog

from notifications.channel import get_email_channel
from notifications.templates import get_template
from shared.config import get_settings

logger = structlog.get_logger(__name__)


def notify(kind: str, recipient: str | None, context: dict) -> bool:
    """Render ``kind`` with ``context`` and mail it to ``recipient``."""
    if not recipient:
        logger.info("notification_skipped", kind=kind, reason="no recipient")
        return False

    try:
        content = get_template(kind).render(context)
        result = get_email_channel().send(
            to=recipient,
            subject=content["subject"],
            body=content["body"],
            html_body=content.get("html_body"),
            sender=get_settings().email_from,
        )
    except Exception:
        logger.exception("notification_failed", kind=kind, order_number=context.get("order_number"))
        return False

    if result.get("status") != "sent":
        logger.warning(
            "notification_not_delivered",
            kind=kind,
            order_number=context.get("order_number"),
            error=result.get("error"),
        )
        return False

    logger.info("notification_sent", kind=kind, message_id=result.get("message_id"))
    return True
