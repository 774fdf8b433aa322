"""Template registry: maps a notification kind to its template class."""

from notifications.templates.order_placed import OrderPlacedTemplate
from notifications.templates.payment_received import PaymentReceivedTemplate

TEMPLATE_REGISTRY: dict[str, type] = {
    OrderPlacedTemplate.kind: OrderPlacedTemplate,
    PaymentReceivedTemplate.kind: PaymentReceivedTemplate,
}


def get_template(kind: str):
    """Look up a template class by notification kind."""
    template_cls = TEMPLATE_REGISTRY.get(kind)
    if template_cls is None:
        raise ValueError(f"No template registered for notification kind: {kind}")
    return template_cls
