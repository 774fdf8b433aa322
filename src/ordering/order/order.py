"""Order aggregate (CQRS) and its state machine.

An Order is created by checkout with stock already reserved and prices frozen
from catalog snapshots. From then on only three things move it:

- payment outcomes reported by the processor (webhooks)
- operator status and shipping updates
- refunds

State Machine:
    pending -> confirmed -> processing -> shipped -> delivered
    pending/confirmed/processing -> cancelled -> refunded
    confirmed/processing/shipped/delivered -> returned
    any non-terminal state (and returned) -> refunded

``pending -> confirmed`` happens only when a verified payment succeeds.
Every value object is always present on an order, so readers never have to
guard against a missing payment or shipping block.
"""

import json
import secrets
import string
import time
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from ordering.domain import ordering
from ordering.order.events import (
    OrderPlaced,
    OrderRefunded,
    OrderStatusChanged,
    PaymentConfirmed,
    PaymentFailed,
    PaymentIntentBound,
    ShippingUpdated,
)
from shared.errors import AlreadySettled, NotOwner


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"
    REFUNDED = "refunded"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class ShippingStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    IN_TRANSIT = "in-transit"
    OUT_FOR_DELIVERY = "out-for-delivery"
    DELIVERED = "delivered"
    RETURNED = "returned"
    FAILED = "failed"


class PaymentOutcome(Enum):
    """What applying a payment-succeeded report did to the order."""

    PAID = "paid"
    MISMATCH = "mismatch"
    IGNORED = "ignored"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED, OrderStatus.REFUNDED},
    OrderStatus.CONFIRMED: {
        OrderStatus.PROCESSING,
        OrderStatus.CANCELLED,
        OrderStatus.RETURNED,
        OrderStatus.REFUNDED,
    },
    OrderStatus.PROCESSING: {
        OrderStatus.SHIPPED,
        OrderStatus.CANCELLED,
        OrderStatus.RETURNED,
        OrderStatus.REFUNDED,
    },
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.RETURNED, OrderStatus.REFUNDED},
    OrderStatus.DELIVERED: {OrderStatus.RETURNED, OrderStatus.REFUNDED},
    OrderStatus.RETURNED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: {OrderStatus.REFUNDED},  # Refund of a cancelled, paid order
    OrderStatus.REFUNDED: set(),  # Terminal
}

# Shipping sub-status implied by an operator status change
_SHIPPING_STATUS_FOR = {
    OrderStatus.PROCESSING: ShippingStatus.PROCESSING,
    OrderStatus.SHIPPED: ShippingStatus.SHIPPED,
    OrderStatus.DELIVERED: ShippingStatus.DELIVERED,
    OrderStatus.RETURNED: ShippingStatus.RETURNED,
}

_BASE36 = string.digits + string.ascii_uppercase


def _base36(number: int) -> str:
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits)) or "0"


def generate_order_number(prefix: str = "ORD") -> str:
    """Human-facing order reference: ``<PREFIX>-<base36 ms clock>-<4 random>``."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(4))
    return f"{prefix}-{_base36(int(time.time() * 1000))}-{suffix}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class ShippingAddress:
    """Where the order goes, as captured at checkout."""

    line1 = String(max_length=255)
    line2 = String(max_length=255)
    city = String(max_length=100)
    state = String(max_length=100)
    postal_code = String(max_length=20)
    country = String(max_length=2)


@ordering.value_object(part_of="Order")
class OrderPricing:
    """Totals locked at checkout. Never recomputed once the order exists."""

    items_price = Float(default=0.0)
    shipping_price = Float(default=0.0)
    tax_price = Float(default=0.0)
    tax_rate = Float(default=0.0)
    discount = Float(default=0.0)
    total_price = Float(default=0.0)
    currency = String(max_length=3, default="USD")


@ordering.value_object(part_of="Order")
class PaymentDetails:
    method = String(max_length=50, default="card")
    status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    intent_id = String(max_length=255)
    transaction_id = String(max_length=255)
    amount = Integer(default=0)  # expected (then settled) amount, minor units
    currency = String(max_length=3, default="usd")
    receipt_url = String(max_length=1024)
    failure_reason = String(max_length=500)


@ordering.value_object(part_of="Order")
class ShippingDetails:
    method = String(max_length=20, default="standard")
    estimated_days = String(max_length=20)
    is_free = Boolean(default=False)
    courier = String(max_length=100)
    tracking_number = String(max_length=255)
    tracking_url = String(max_length=1024)
    status = String(choices=ShippingStatus, default=ShippingStatus.PENDING.value)
    shipped_at = DateTime()
    estimated_delivery = DateTime()


@ordering.value_object(part_of="Order")
class RefundDetails:
    amount = Integer(default=0)  # minor units
    reason = String(max_length=500)
    refunded_at = DateTime()


_VALUE_OBJECT_FIELDS = {
    ShippingAddress: ("line1", "line2", "city", "state", "postal_code", "country"),
    OrderPricing: ("items_price", "shipping_price", "tax_price", "tax_rate", "discount", "total_price", "currency"),
    PaymentDetails: (
        "method",
        "status",
        "intent_id",
        "transaction_id",
        "amount",
        "currency",
        "receipt_url",
        "failure_reason",
    ),
    ShippingDetails: (
        "method",
        "estimated_days",
        "is_free",
        "courier",
        "tracking_number",
        "tracking_url",
        "status",
        "shipped_at",
        "estimated_delivery",
    ),
    RefundDetails: ("amount", "reason", "refunded_at"),
}


def _replace(value_object, **changes):
    """Copy an immutable value object with some fields changed."""
    cls = type(value_object)
    data = {name: getattr(value_object, name) for name in _VALUE_OBJECT_FIELDS[cls]}
    data.update(changes)
    return cls(**data)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A purchased line, frozen from the catalog snapshot at reservation time."""

    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    sku = String(max_length=64)
    image = String(max_length=512)
    price = Float(required=True, min_value=0.0)
    qty = Integer(required=True, min_value=1)

    @property
    def line_total(self) -> float:
        return self.price * self.qty


@ordering.entity(part_of="Order")
class TimelineEntry:
    status = String(required=True, max_length=50)
    message = String(max_length=500)
    location = String(max_length=255)
    timestamp = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    order_number = String(required=True, max_length=40, unique=True)
    customer_id = Identifier(required=True)
    customer_email = String(max_length=254)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    items = HasMany(OrderItem)
    timeline = HasMany(TimelineEntry)
    shipping_address = ValueObject(ShippingAddress)
    pricing = ValueObject(OrderPricing)
    payment = ValueObject(PaymentDetails)
    shipping = ValueObject(ShippingDetails)
    refund = ValueObject(RefundDetails)
    coupon_code = String(max_length=50)
    payment_intent_id = String(max_length=255)  # mirrors payment.intent_id for lookups
    is_paid = Boolean(default=False)
    paid_at = DateTime()
    is_delivered = Boolean(default=False)
    delivered_at = DateTime()
    notes = String(max_length=1000)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def paid_flag_must_match_payment_status(self):
        if self.payment is None:
            return
        settled = self.payment.status == PaymentStatus.PAID.value
        if bool(self.is_paid) != settled:
            raise ValidationError({"is_paid": ["Paid flag disagrees with payment status"]})
        if self.is_paid and self.paid_at is None:
            raise ValidationError({"paid_at": ["A paid order must record when it was paid"]})

    @invariant.post
    def delivered_flag_requires_timestamp(self):
        if self.is_delivered and self.delivered_at is None:
            raise ValidationError({"delivered_at": ["A delivered order must record when it was delivered"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id,
        items,
        shipping_address,
        totals,
        customer_email=None,
        payment_method="card",
        coupon_code=None,
        currency="usd",
        order_number_prefix="ORD",
        order_number=None,
    ):
        """Create a pending order from reserved, priced lines.

        Args:
            customer_id: Owner of the order.
            items: List of dicts with product_id, name, sku, image, price, qty.
            shipping_address: Dict with line1, line2, city, state, postal_code, country.
            totals: ``OrderTotals`` computed from the same lines.
        """
        if not items:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        order = cls(
            order_number=order_number or generate_order_number(order_number_prefix),
            customer_id=customer_id,
            customer_email=customer_email,
            status=OrderStatus.PENDING.value,
            items=[OrderItem(**item) for item in items],
            timeline=[
                TimelineEntry(
                    status=OrderStatus.PENDING.value,
                    message="Order placed",
                    timestamp=now,
                )
            ],
            shipping_address=ShippingAddress(**shipping_address),
            pricing=OrderPricing(
                items_price=totals.items_price,
                shipping_price=totals.shipping_price,
                tax_price=totals.tax_price,
                tax_rate=totals.tax_rate,
                discount=totals.discount,
                total_price=totals.total_price,
                currency=totals.currency,
            ),
            payment=PaymentDetails(
                method=payment_method or "card",
                status=PaymentStatus.PENDING.value,
                currency=currency,
            ),
            shipping=ShippingDetails(
                method=totals.shipping_method,
                estimated_days=totals.shipping_days,
                is_free=totals.is_free_shipping,
            ),
            refund=RefundDetails(),
            coupon_code=coupon_code,
            is_paid=False,
            is_delivered=False,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                customer_id=str(customer_id),
                items=json.dumps(items),
                items_price=totals.items_price,
                total_price=totals.total_price,
                currency=totals.currency,
                coupon_code=coupon_code,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Ownership
    # -------------------------------------------------------------------
    def is_owned_by(self, customer_id) -> bool:
        return str(self.customer_id) == str(customer_id)

    def assert_owned_by(self, customer_id) -> None:
        if not self.is_owned_by(customer_id):
            raise NotOwner(order_id=str(self.id))

    # -------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------
    def can_transition_to(self, target: OrderStatus) -> bool:
        return target in _VALID_TRANSITIONS[OrderStatus(self.status)]

    def _assert_can_transition(self, target_status):
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS[current]:
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def _transition(self, target_status, message=None, location=None, now=None):
        """Move to ``target_status`` and record it. Caller holds atomic_change."""
        self._assert_can_transition(target_status)
        now = now or datetime.now(UTC)
        previous = self.status
        self.status = target_status.value
        self.add_timeline(
            TimelineEntry(
                status=target_status.value,
                message=message or f"Order {target_status.value}",
                location=location,
                timestamp=now,
            )
        )
        self.updated_at = now
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                new_status=target_status.value,
                message=message,
                changed_at=now,
            )
        )

    def add_timeline_event(self, status, message=None, location=None):
        """Append a note to the timeline without changing status."""
        now = datetime.now(UTC)
        self.add_timeline(TimelineEntry(status=status, message=message, location=location, timestamp=now))
        self.updated_at = now

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    @property
    def payment_status(self) -> str:
        return self.payment.status

    def assert_payable(self) -> None:
        """Only a live, unsettled order may be charged."""
        if self.is_paid or self.payment.status in (PaymentStatus.PAID.value, PaymentStatus.REFUNDED.value):
            raise AlreadySettled(order_id=str(self.id))
        if self.status in (OrderStatus.CANCELLED.value, OrderStatus.REFUNDED.value):
            raise AlreadySettled(f"Order is {self.status}", order_id=str(self.id))

    def bind_payment_intent(self, intent_id, amount, currency, method="card"):
        """Record the processor intent the customer is about to pay against."""
        self.assert_payable()

        now = datetime.now(UTC)
        with atomic_change(self):
            self.payment = _replace(
                self.payment,
                method=method,
                status=PaymentStatus.PENDING.value,
                intent_id=intent_id,
                amount=amount,
                currency=currency.lower(),
                failure_reason=None,
            )
            self.payment_intent_id = intent_id
            self.updated_at = now

        self.raise_(
            PaymentIntentBound(
                order_id=str(self.id),
                intent_id=intent_id,
                amount=amount,
                currency=currency.lower(),
            )
        )

    def confirm_payment(
        self,
        intent_id,
        amount_received,
        currency,
        charge_id=None,
        receipt_url=None,
        method=None,
    ) -> PaymentOutcome:
        """Apply a payment-succeeded report.

        The settled amount and currency must match what the intent was created
        for. A mismatch is recorded as a failed payment and the order is not
        marked paid.
        """
        if self.status in (OrderStatus.CANCELLED.value, OrderStatus.REFUNDED.value):
            return PaymentOutcome.IGNORED
        if self.is_paid or self.payment.status == PaymentStatus.PAID.value:
            return PaymentOutcome.IGNORED

        expected_amount = self.payment.amount or 0
        if expected_amount > 0 and amount_received is not None and int(amount_received) != expected_amount:
            self._record_failure(intent_id, "Payment amount mismatch")
            return PaymentOutcome.MISMATCH

        expected_currency = self.payment.currency
        if expected_currency and currency and currency.lower() != expected_currency.lower():
            self._record_failure(intent_id, "Payment currency mismatch")
            return PaymentOutcome.MISMATCH

        now = datetime.now(UTC)
        settled_amount = int(amount_received) if amount_received is not None else expected_amount
        with atomic_change(self):
            self.payment = _replace(
                self.payment,
                status=PaymentStatus.PAID.value,
                intent_id=intent_id,
                transaction_id=charge_id or intent_id,
                amount=settled_amount,
                currency=(currency or expected_currency).lower(),
                method=method or self.payment.method or "card",
                receipt_url=receipt_url or self.payment.receipt_url,
                failure_reason=None,
            )
            self.payment_intent_id = intent_id
            self.is_paid = True
            self.paid_at = now
            if self.status == OrderStatus.PENDING.value:
                self._transition(OrderStatus.CONFIRMED, message="Payment received", now=now)
            else:
                self.updated_at = now

        self.raise_(
            PaymentConfirmed(
                order_id=str(self.id),
                intent_id=intent_id,
                transaction_id=charge_id or intent_id,
                amount=settled_amount,
                currency=self.payment.currency,
                paid_at=now,
            )
        )
        return PaymentOutcome.PAID

    def record_payment_failure(self, intent_id, reason=None) -> bool:
        """Apply a payment-failed report. Late failures for settled orders are ignored."""
        if self.is_paid or self.payment.status in (PaymentStatus.PAID.value, PaymentStatus.REFUNDED.value):
            return False
        if self.status == OrderStatus.REFUNDED.value:
            return False
        self._record_failure(intent_id, reason or "Payment failed")
        return True

    def _record_failure(self, intent_id, reason):
        now = datetime.now(UTC)
        with atomic_change(self):
            self.payment = _replace(
                self.payment,
                status=PaymentStatus.FAILED.value,
                intent_id=intent_id or self.payment.intent_id,
                failure_reason=reason,
            )
            if intent_id:
                self.payment_intent_id = intent_id
            self.is_paid = False
            self.updated_at = now
        self.add_timeline_event(self.status, message=f"Payment failed: {reason}")
        self.raise_(PaymentFailed(order_id=str(self.id), intent_id=intent_id, reason=reason))

    def record_refund(self, amount, reason=None, charge_id=None) -> bool:
        """Apply a refund report. Returns False if the order was already refunded."""
        if self.status == OrderStatus.REFUNDED.value or self.payment.status == PaymentStatus.REFUNDED.value:
            return False

        self._assert_can_transition(OrderStatus.REFUNDED)
        now = datetime.now(UTC)
        with atomic_change(self):
            self.payment = _replace(
                self.payment,
                status=PaymentStatus.REFUNDED.value,
                transaction_id=charge_id or self.payment.transaction_id,
            )
            self.refund = RefundDetails(
                amount=int(amount or 0),
                reason=reason or self.refund.reason,
                refunded_at=now,
            )
            self.is_paid = False
            self._transition(OrderStatus.REFUNDED, message=reason or "Payment refunded", now=now)

        self.raise_(
            OrderRefunded(
                order_id=str(self.id),
                amount=int(amount or 0),
                reason=reason,
                refunded_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Operator updates
    # -------------------------------------------------------------------
    def change_status(self, new_status, message=None, location=None):
        """Operator status change. Payment confirmation is not an operator action."""
        try:
            target = OrderStatus(new_status)
        except ValueError as exc:
            raise ValidationError({"status": [f"Unknown order status: {new_status}"]}) from exc
        if self.status == OrderStatus.PENDING.value and target == OrderStatus.CONFIRMED:
            raise ValidationError({"status": ["Orders are confirmed by a successful payment"]})
        if target == OrderStatus.REFUNDED:
            raise ValidationError({"status": ["Refunds are recorded from the payment processor"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            self._transition(target, message=message, location=location, now=now)
            shipping_status = _SHIPPING_STATUS_FOR.get(target)
            if shipping_status is not None:
                changes = {"status": shipping_status.value}
                if target == OrderStatus.SHIPPED and self.shipping.shipped_at is None:
                    changes["shipped_at"] = now
                self.shipping = _replace(self.shipping, **changes)
            if target == OrderStatus.DELIVERED:
                self.is_delivered = True
                self.delivered_at = now

    def update_shipping(
        self,
        courier=None,
        tracking_number=None,
        tracking_url=None,
        shipping_status=None,
        estimated_delivery=None,
    ):
        if self.status in (OrderStatus.CANCELLED.value, OrderStatus.REFUNDED.value):
            raise ValidationError({"status": [f"Cannot update shipping on a {self.status} order"]})

        changes = {
            key: value
            for key, value in {
                "courier": courier,
                "tracking_number": tracking_number,
                "tracking_url": tracking_url,
                "estimated_delivery": estimated_delivery,
            }.items()
            if value is not None
        }
        if shipping_status is not None:
            try:
                changes["status"] = ShippingStatus(shipping_status).value
            except ValueError as exc:
                raise ValidationError({"shipping_status": [f"Unknown shipping status: {shipping_status}"]}) from exc

        if not changes:
            return

        now = datetime.now(UTC)
        self.shipping = _replace(self.shipping, **changes)
        self.add_timeline_event(
            self.status,
            message=f"Shipping updated: {self.shipping.status}",
        )
        self.updated_at = now
        self.raise_(
            ShippingUpdated(
                order_id=str(self.id),
                shipping_status=self.shipping.status,
                courier=self.shipping.courier,
                tracking_number=self.shipping.tracking_number,
                updated_at=now,
            )
        )
