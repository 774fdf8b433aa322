"""Coupon aggregate (CQRS): promotional rules plus a redemption log.

Checking a coupon never changes it. Only ``redeem`` writes, and checkout calls
it after the order it discounts has been committed.
"""

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, Text

from ordering.coupon.events import CouponCreated, CouponRedeemed
from ordering.domain import ordering
from ordering.pricing.money import round_money


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@dataclass(frozen=True)
class CouponCheck:
    valid: bool
    reason: str | None = None


@ordering.entity(part_of="Coupon")
class CouponUsage:
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    amount = Float(default=0.0)
    used_at = DateTime(required=True)


def _aware(value):
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@ordering.aggregate
class Coupon:
    code = String(required=True, max_length=50)
    description = String(max_length=500)
    discount_type = String(choices=DiscountType, default=DiscountType.PERCENTAGE.value)
    discount_value = Float(required=True, min_value=0.0)
    min_order_amount = Float(default=0.0, min_value=0.0)
    max_discount_amount = Float(min_value=0.0)  # ceiling for percentage discounts
    usage_limit = Integer(min_value=0)  # None means unlimited
    usage_limit_per_user = Integer(default=1, min_value=1)
    used_count = Integer(default=0, min_value=0)
    valid_from = DateTime()
    valid_until = DateTime(required=True)
    allowed_users = Text()  # JSON array of user ids; empty means everyone
    first_order_only = Boolean(default=False)
    is_active = Boolean(default=True)
    usages = HasMany(CouponUsage)
    created_at = DateTime()

    @invariant.post
    def percentage_cannot_exceed_hundred(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and self.discount_value > 100:
            raise ValidationError({"discount_value": ["Percentage discounts cannot exceed 100"]})

    @invariant.post
    def usage_cannot_exceed_limit(self):
        if self.usage_limit is not None and self.used_count > self.usage_limit:
            raise ValidationError({"used_count": ["Coupon used more times than its limit allows"]})

    @classmethod
    def create(
        cls,
        code,
        discount_value,
        valid_until,
        discount_type=DiscountType.PERCENTAGE.value,
        description=None,
        min_order_amount=0.0,
        max_discount_amount=None,
        usage_limit=None,
        usage_limit_per_user=1,
        valid_from=None,
        allowed_users=None,
        first_order_only=False,
        is_active=True,
    ):
        now = datetime.now(UTC)
        coupon = cls(
            code=code.strip().upper(),
            description=description,
            discount_type=discount_type,
            discount_value=discount_value,
            min_order_amount=min_order_amount or 0.0,
            max_discount_amount=max_discount_amount,
            usage_limit=usage_limit,
            usage_limit_per_user=usage_limit_per_user or 1,
            used_count=0,
            valid_from=valid_from or now,
            valid_until=valid_until,
            allowed_users=json.dumps([str(u) for u in (allowed_users or [])]),
            first_order_only=first_order_only,
            is_active=is_active,
            created_at=now,
        )
        coupon.raise_(
            CouponCreated(
                coupon_id=str(coupon.id),
                code=coupon.code,
                discount_type=coupon.discount_type,
                discount_value=coupon.discount_value,
            )
        )
        return coupon

    # -------------------------------------------------------------------
    # Checks (read-only)
    # -------------------------------------------------------------------
    @property
    def allowed_user_ids(self) -> list[str]:
        return json.loads(self.allowed_users) if self.allowed_users else []

    def is_currently_valid(self, now=None) -> bool:
        """Active, inside its window, and below the global usage limit."""
        now = now or datetime.now(UTC)
        if not self.is_active:
            return False
        if self.valid_from is not None and now < _aware(self.valid_from):
            return False
        if now > _aware(self.valid_until):
            return False
        return self.usage_limit is None or self.used_count < self.usage_limit

    def redemptions_by(self, user_id) -> int:
        return sum(1 for usage in self.usages if str(usage.user_id) == str(user_id))

    def check(self, user_id, is_first_order, order_total, now=None) -> CouponCheck:
        if not self.is_currently_valid(now):
            return CouponCheck(False, "Coupon is not valid or has expired")
        if order_total < (self.min_order_amount or 0.0):
            return CouponCheck(False, f"Minimum order amount of {self.min_order_amount:.2f} required")
        if self.first_order_only and not is_first_order:
            return CouponCheck(False, "This coupon is only valid for first orders")
        allowed = self.allowed_user_ids
        if allowed and str(user_id) not in allowed:
            return CouponCheck(False, "This coupon is not available for your account")
        if self.redemptions_by(user_id) >= self.usage_limit_per_user:
            return CouponCheck(False, "You have already used this coupon the maximum number of times")
        return CouponCheck(True)

    def calculate_discount(self, order_total) -> float:
        """Discount on ``order_total``: never negative, never more than the total."""
        order_total = max(order_total or 0.0, 0.0)
        if self.discount_type == DiscountType.PERCENTAGE.value:
            discount = order_total * self.discount_value / 100
            if self.max_discount_amount and discount > self.max_discount_amount:
                discount = self.max_discount_amount
        else:
            discount = self.discount_value
        return round_money(min(max(discount, 0.0), order_total))

    # -------------------------------------------------------------------
    # Redemption
    # -------------------------------------------------------------------
    def redeem(self, user_id, order_id, amount):
        """Log a usage. Limits are checked again: a concurrent checkout may have used the last slot."""
        if self.redemptions_by(user_id) >= self.usage_limit_per_user:
            raise ValidationError({"code": ["Per-user usage limit reached"]})
        now = datetime.now(UTC)
        self.add_usages(CouponUsage(user_id=user_id, order_id=order_id, amount=amount, used_at=now))
        self.used_count += 1
        self.raise_(
            CouponRedeemed(
                coupon_id=str(self.id),
                code=self.code,
                user_id=str(user_id),
                order_id=str(order_id),
                amount=amount,
                redeemed_at=now,
            )
        )
