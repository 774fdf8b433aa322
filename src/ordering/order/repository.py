"""Repository for the Order aggregate."""

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.repository(part_of=Order)
class OrderRepository:
    def find_by_intent_id(self, intent_id: str) -> Order | None:
        """Find the order bound to a processor payment intent."""
        if not intent_id:
            return None
        results = self._dao.query.filter(payment_intent_id=intent_id).all().items
        return results[0] if results else None

    def find_by_number(self, order_number: str) -> Order | None:
        results = self._dao.query.filter(order_number=order_number).all().items
        return results[0] if results else None

    def count_for_customer(self, customer_id: str) -> int:
        return self._dao.query.filter(customer_id=str(customer_id)).all().total

    def page_for_customer(self, customer_id: str, page: int, limit: int):
        """Newest first. Returns (orders, total)."""
        result = (
            self._dao.query.filter(customer_id=str(customer_id))
            .order_by("-created_at")
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return result.items, result.total
