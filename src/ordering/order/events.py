"""Domain events for the Order aggregate.

Events are immutable facts raised by the aggregate and dispatched when the
order is persisted. Downstream consumers (mail, analytics, fulfilment) react
to these instead of reading order rows.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """Checkout succeeded: stock is reserved and the order awaits payment."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of line dicts
    items_price = Float(required=True)
    total_price = Float(required=True)
    currency = String(default="USD")
    coupon_code = String()
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentIntentBound:
    """A processor intent was created (or re-used) for the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    intent_id = String(required=True)
    amount = Integer(required=True)  # minor units
    currency = String(required=True)


@ordering.event(part_of="Order")
class PaymentConfirmed:
    """The processor reported a settled charge matching the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    intent_id = String(required=True)
    transaction_id = String()
    amount = Integer(required=True)  # minor units
    currency = String(required=True)
    paid_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentFailed:
    """The charge failed, or it did not match what the order expected."""

    __version__ = 1

    order_id = Identifier(required=True)
    intent_id = String()
    reason = String(required=True)


@ordering.event(part_of="Order")
class OrderRefunded:
    __version__ = 1

    order_id = Identifier(required=True)
    amount = Integer()  # minor units
    reason = String()
    refunded_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    message = String()
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class ShippingUpdated:
    __version__ = 1

    order_id = Identifier(required=True)
    shipping_status = String()
    courier = String()
    tracking_number = String()
    updated_at = DateTime(required=True)
