"""Coupon management: commands and handler."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.coupon.coupon import Coupon
from ordering.domain import logger, ordering


@ordering.command(part_of="Coupon")
class CreateCoupon:
    code = String(required=True, max_length=50)
    description = String(max_length=500)
    discount_type = String(required=True, max_length=20)
    discount_value = Float(required=True, min_value=0.0)
    min_order_amount = Float(default=0.0)
    max_discount_amount = Float()
    usage_limit = Integer()
    usage_limit_per_user = Integer(default=1)
    valid_from = DateTime()
    valid_until = DateTime(required=True)
    allowed_users = Text()  # JSON array of user ids
    first_order_only = Boolean(default=False)
    is_active = Boolean(default=True)


@ordering.command(part_of="Coupon")
class RedeemCoupon:
    """Record a committed order's use of a coupon."""

    code = String(required=True, max_length=50)
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    amount = Float(required=True)


@ordering.command_handler(part_of=Coupon)
class CouponHandler:
    @handle(CreateCoupon)
    def create_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        if repo.find_by_code(command.code) is not None:
            raise ValidationError({"code": ["A coupon with this code already exists"]})

        allowed_users = json.loads(command.allowed_users) if command.allowed_users else []
        coupon = Coupon.create(
            code=command.code,
            description=command.description,
            discount_type=command.discount_type,
            discount_value=command.discount_value,
            min_order_amount=command.min_order_amount,
            max_discount_amount=command.max_discount_amount,
            usage_limit=command.usage_limit,
            usage_limit_per_user=command.usage_limit_per_user,
            valid_from=command.valid_from,
            valid_until=command.valid_until,
            allowed_users=allowed_users,
            first_order_only=command.first_order_only,
            is_active=command.is_active,
        )
        repo.add(coupon)
        return str(coupon.id)

    @handle(RedeemCoupon)
    def redeem_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        coupon = repo.find_by_code(command.code)
        if coupon is None:
            raise ValidationError({"code": ["Unknown coupon"]})

        coupon.redeem(user_id=command.user_id, order_id=command.order_id, amount=command.amount)
        repo.add(coupon)
        logger.info("coupon_redeemed", code=coupon.code, order_id=command.order_id, used_count=coupon.used_count)
