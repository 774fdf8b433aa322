"""Read-side helpers for a customer's own orders."""

from dataclasses import dataclass

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from ordering.order.order import Order
from shared.errors import OrderNotFound

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class OrderPage:
    orders: list
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.total else 0


def load_order(order_id) -> Order:
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError as exc:
        raise OrderNotFound(order_id=str(order_id)) from exc


def get_order_for(customer_id, order_id) -> Order:
    """Fetch an order, refusing anyone but its owner."""
    order = load_order(order_id)
    order.assert_owned_by(customer_id)
    return order


def list_orders_for(customer_id, page: int = 1, limit: int = 20) -> OrderPage:
    if page < 1:
        raise ValidationError({"page": ["Page must be 1 or greater"]})
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationError({"limit": [f"Limit must be between 1 and {MAX_PAGE_SIZE}"]})

    orders, total = current_domain.repository_for(Order).page_for_customer(customer_id, page, limit)
    return OrderPage(orders=list(orders), page=page, limit=limit, total=total)
