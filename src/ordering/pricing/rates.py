"""Shipping and tax rate tables (USD).

Rates are keyed by shipping region. A region is either a country with its own
row (domestic and East Africa) or one of the buckets ``AFRICA``, ``EU``,
``US`` and ``DEFAULT``.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ShippingRate:
    price: float
    days: str


DOMESTIC_REGION = "UG"
FREE_SHIPPING_THRESHOLD = 50.00

STANDARD = "standard"
EXPRESS = "express"
SHIPPING_METHODS = (STANDARD, EXPRESS)

SHIPPING_RATES: dict[str, dict[str, ShippingRate]] = {
    "UG": {STANDARD: ShippingRate(5.00, "3-5"), EXPRESS: ShippingRate(12.00, "1-2")},
    "KE": {STANDARD: ShippingRate(15.00, "5-7"), EXPRESS: ShippingRate(30.00, "2-3")},
    "TZ": {STANDARD: ShippingRate(15.00, "5-7"), EXPRESS: ShippingRate(30.00, "2-3")},
    "RW": {STANDARD: ShippingRate(12.00, "4-6"), EXPRESS: ShippingRate(25.00, "2-3")},
    "SS": {STANDARD: ShippingRate(18.00, "7-10"), EXPRESS: ShippingRate(35.00, "3-4")},
    "AFRICA": {STANDARD: ShippingRate(25.00, "10-14"), EXPRESS: ShippingRate(50.00, "5-7")},
    "EU": {STANDARD: ShippingRate(35.00, "14-21"), EXPRESS: ShippingRate(70.00, "7-10")},
    "US": {STANDARD: ShippingRate(40.00, "14-21"), EXPRESS: ShippingRate(80.00, "7-10")},
    "DEFAULT": {STANDARD: ShippingRate(45.00, "21-30"), EXPRESS: ShippingRate(90.00, "10-14")},
}

# fmt: off
AFRICAN_COUNTRIES = frozenset({
    "DZ", "AO", "BJ", "BW", "BF", "BI", "CV", "CM", "CF", "TD", "KM", "CG", "CD",
    "DJ", "EG", "GQ", "ER", "SZ", "ET", "GA", "GM", "GH", "GN", "GW", "CI", "LS",
    "LR", "LY", "MG", "MW", "ML", "MR", "MU", "MA", "MZ", "NA", "NE", "NG", "RE",
    "SC", "SL", "SO", "ZA", "SD", "TG", "TN", "UG", "ZM", "ZW", "KE", "TZ", "RW", "SS",
})

EU_COUNTRIES = frozenset({
    "AT", "BE", "BG", "HR", "CY", "CZ", "DK", "EE", "FI", "FR", "DE", "GR", "HU",
    "IE", "IT", "LV", "LT", "LU", "MT", "NL", "PL", "PT", "RO", "SK", "SI", "ES", "SE",
})
# fmt: on

NORTH_AMERICA = frozenset({"US", "CA"})

# Weight and volume surcharges
WEIGHT_ALLOWANCE_KG = 5.0
WEIGHT_SURCHARGE_PER_KG = 2.00
ITEM_ALLOWANCE = 10
ITEM_SURCHARGE = 0.50

# VAT on merchandise only; countries not listed are zero-rated
TAX_RATES: dict[str, float] = {
    "UG": 0.18,
    "KE": 0.16,
    "TZ": 0.18,
    "RW": 0.18,
}
DEFAULT_TAX_RATE = 0.0
