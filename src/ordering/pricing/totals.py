"""Order totals: merchandise, shipping, tax and discount combined.

Amounts accumulate unrounded and are rounded to cents only on the way out,
so the grand total is computed from exact components.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from ordering.pricing.money import round_money
from ordering.pricing.rates import STANDARD
from ordering.pricing.shipping import unrounded_shipping_quote
from ordering.pricing.tax import tax_rate_for


@dataclass(frozen=True)
class PricedLine:
    """A line whose unit price has already been read from the catalog."""

    unit_price: float
    quantity: int
    weight: float = 0.0


@dataclass(frozen=True)
class OrderTotals:
    items_price: float
    shipping_price: float
    tax_price: float
    discount: float
    total_price: float
    item_count: int
    shipping_method: str
    shipping_days: str
    is_free_shipping: bool
    tax_rate: float
    currency: str = "USD"


def compute_order_totals(
    items: Iterable[PricedLine],
    country_code: str | None,
    shipping_method: str = STANDARD,
    coupon_discount: float = 0.0,
) -> OrderTotals:
    lines = list(items)
    if not lines:
        raise ValueError("Cannot price an order without items")

    items_price = sum(line.unit_price * line.quantity for line in lines)
    item_count = sum(line.quantity for line in lines)
    total_weight = sum(line.weight * line.quantity for line in lines)

    shipping = unrounded_shipping_quote(
        country_code,
        items_price,
        method=shipping_method,
        item_count=item_count,
        total_weight=total_weight,
    )
    tax_rate = tax_rate_for(country_code)
    tax = items_price * tax_rate
    discount = min(max(coupon_discount or 0.0, 0.0), items_price)
    total = max(items_price + shipping.cost + tax - discount, 0.0)

    return OrderTotals(
        items_price=round_money(items_price),
        shipping_price=round_money(shipping.cost),
        tax_price=round_money(tax),
        discount=round_money(discount),
        total_price=round_money(total),
        item_count=item_count,
        shipping_method=shipping.method,
        shipping_days=shipping.estimated_days,
        is_free_shipping=shipping.is_free,
        tax_rate=tax_rate,
    )
