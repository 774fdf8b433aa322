"""Shipping cost calculation by destination region."""

from dataclasses import dataclass

from ordering.pricing.money import round_money
from ordering.pricing.rates import (
    AFRICAN_COUNTRIES,
    DOMESTIC_REGION,
    EU_COUNTRIES,
    FREE_SHIPPING_THRESHOLD,
    ITEM_ALLOWANCE,
    ITEM_SURCHARGE,
    NORTH_AMERICA,
    SHIPPING_METHODS,
    SHIPPING_RATES,
    STANDARD,
    WEIGHT_ALLOWANCE_KG,
    WEIGHT_SURCHARGE_PER_KG,
)


@dataclass(frozen=True)
class ShippingQuote:
    cost: float
    estimated_days: str
    is_free: bool
    method: str
    region: str

    @property
    def name(self) -> str:
        return f"{self.method.capitalize()} Shipping"


def resolve_region(country_code: str | None) -> str:
    """Map an ISO country code to its shipping region."""
    code = (country_code or "").strip().upper()
    if code in SHIPPING_RATES:
        return code
    if code in EU_COUNTRIES:
        return "EU"
    if code in NORTH_AMERICA:
        return "US"
    if code in AFRICAN_COUNTRIES:
        return "AFRICA"
    return "DEFAULT"


def unrounded_shipping_quote(
    country_code: str | None,
    items_subtotal: float,
    method: str = STANDARD,
    item_count: int = 1,
    total_weight: float = 0.0,
) -> ShippingQuote:
    region = resolve_region(country_code)
    rates = SHIPPING_RATES[region]
    if method not in rates:
        method = STANDARD
    rate = rates[method]

    if region == DOMESTIC_REGION and method == STANDARD and items_subtotal >= FREE_SHIPPING_THRESHOLD:
        return ShippingQuote(cost=0.0, estimated_days=rate.days, is_free=True, method=method, region=region)

    cost = rate.price
    if total_weight > WEIGHT_ALLOWANCE_KG:
        cost += (total_weight - WEIGHT_ALLOWANCE_KG) * WEIGHT_SURCHARGE_PER_KG
    if item_count > ITEM_ALLOWANCE:
        cost += (item_count - ITEM_ALLOWANCE) * ITEM_SURCHARGE

    return ShippingQuote(cost=cost, estimated_days=rate.days, is_free=False, method=method, region=region)


def compute_shipping(
    country_code: str | None,
    items_subtotal: float,
    method: str = STANDARD,
    item_count: int = 1,
    total_weight: float = 0.0,
) -> ShippingQuote:
    """Quote shipping for a destination.

    Free standard shipping applies only to domestic orders at or above the
    threshold. Weight and item-count surcharges stack on top of the base rate
    otherwise. Unknown methods fall back to standard.
    """
    quote = unrounded_shipping_quote(country_code, items_subtotal, method, item_count, total_weight)
    return ShippingQuote(
        cost=round_money(quote.cost),
        estimated_days=quote.estimated_days,
        is_free=quote.is_free,
        method=quote.method,
        region=quote.region,
    )


def shipping_methods(country_code: str | None, items_subtotal: float) -> list[ShippingQuote]:
    """Quote every method offered for the destination region."""
    region = resolve_region(country_code)
    return [
        compute_shipping(country_code, items_subtotal, method=method)
        for method in SHIPPING_METHODS
        if method in SHIPPING_RATES[region]
    ]
