"""Repository for the Coupon aggregate."""

from ordering.coupon.coupon import Coupon
from ordering.domain import ordering


@ordering.repository(part_of=Coupon)
class CouponRepository:
    def find_by_code(self, code: str) -> Coupon | None:
        if not code:
            return None
        results = self._dao.query.filter(code=code.strip().upper()).all().items
        return results[0] if results else None
