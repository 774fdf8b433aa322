"""Sales tax / VAT on merchandise."""

from dataclasses import dataclass

from ordering.pricing.money import round_money
from ordering.pricing.rates import DEFAULT_TAX_RATE, TAX_RATES


@dataclass(frozen=True)
class TaxQuote:
    rate: float
    amount: float
    country_code: str

    @property
    def rate_percent(self) -> str:
        return f"{self.rate * 100:.0f}%"


def tax_rate_for(country_code: str | None) -> float:
    return TAX_RATES.get((country_code or "").strip().upper(), DEFAULT_TAX_RATE)


def compute_tax(country_code: str | None, subtotal: float) -> TaxQuote:
    """Tax applies to the merchandise subtotal only, never to shipping."""
    code = (country_code or "").strip().upper()
    rate = tax_rate_for(code)
    return TaxQuote(rate=rate, amount=round_money(subtotal * rate), country_code=code)
