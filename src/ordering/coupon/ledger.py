"""Coupon checks used by checkout."""

from dataclasses import dataclass

from protean.utils.globals import current_domain

from ordering.coupon.coupon import Coupon


@dataclass(frozen=True)
class CouponQuote:
    """Outcome of checking a code against a prospective order."""

    code: str | None
    valid: bool
    discount: float = 0.0
    reason: str | None = None


def quote_coupon(code, user_id, is_first_order, order_total) -> CouponQuote:
    """Check ``code`` for this user and order total without recording anything."""
    if not code:
        return CouponQuote(code=None, valid=False)

    coupon = current_domain.repository_for(Coupon).find_by_code(code)
    if coupon is None:
        return CouponQuote(code=code.strip().upper(), valid=False, reason="Invalid coupon")

    check = coupon.check(user_id=user_id, is_first_order=is_first_order, order_total=order_total)
    if not check.valid:
        return CouponQuote(code=coupon.code, valid=False, reason=check.reason)
    return CouponQuote(code=coupon.code, valid=True, discount=coupon.calculate_discount(order_total))
