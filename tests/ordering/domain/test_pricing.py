"""Tests for the pricing engine: money rounding, shipping, tax and order totals."""

import pytest
from ordering.pricing.money import from_minor_units, round_money, to_minor_units
from ordering.pricing.shipping import compute_shipping, resolve_region, shipping_methods
from ordering.pricing.tax import compute_tax, tax_rate_for
from ordering.pricing.totals import PricedLine, compute_order_totals


class TestMoney:
    def test_rounds_half_up(self):
        assert round_money(2.675) == 2.68
        assert round_money(2.674) == 2.67

    def test_minor_units(self):
        assert to_minor_units(19.99) == 1999
        assert to_minor_units(70.765) == 7077
        assert from_minor_units(1999) == 19.99


class TestRegions:
    @pytest.mark.parametrize(
        "country, region",
        [
            ("UG", "UG"),
            ("ke", "KE"),
            ("NG", "AFRICA"),
            ("FR", "EU"),
            ("CA", "US"),
            ("JP", "DEFAULT"),
            (None, "DEFAULT"),
        ],
    )
    def test_resolve_region(self, country, region):
        assert resolve_region(country) == region


class TestShipping:
    def test_domestic_standard_free_at_threshold(self):
        quote = compute_shipping("UG", 50.0)
        assert quote.is_free is True
        assert quote.cost == 0.0
        assert quote.estimated_days == "3-5"

    def test_domestic_below_threshold_pays_base_rate(self):
        quote = compute_shipping("UG", 49.99)
        assert quote.is_free is False
        assert quote.cost == 5.0

    def test_express_is_never_free(self):
        quote = compute_shipping("UG", 500.0, method="express")
        assert quote.is_free is False
        assert quote.cost == 12.0

    def test_threshold_does_not_apply_abroad(self):
        assert compute_shipping("KE", 500.0).cost == 15.0

    def test_weight_surcharge(self):
        assert compute_shipping("UG", 10.0, total_weight=7.0).cost == 9.0

    def test_item_count_surcharge(self):
        assert compute_shipping("UG", 12.0, item_count=12).cost == 6.0

    def test_unknown_method_falls_back_to_standard(self):
        quote = compute_shipping("FR", 10.0, method="drone")
        assert quote.method == "standard"
        assert quote.cost == 35.0

    def test_shipping_methods_lists_every_method(self):
        quotes = shipping_methods("UG", 60.0)
        assert [q.method for q in quotes] == ["standard", "express"]
        assert quotes[0].is_free is True
        assert quotes[0].name == "Standard Shipping"
        assert quotes[1].cost == 12.0


class TestTax:
    def test_known_rate(self):
        assert tax_rate_for("ug") == 0.18
        quote = compute_tax("KE", 30.0)
        assert quote.amount == 4.8
        assert quote.rate_percent == "16%"

    def test_unlisted_country_is_zero_rated(self):
        assert compute_tax("US", 100.0).amount == 0.0


class TestOrderTotals:
    def test_domestic_order_with_free_shipping(self):
        totals = compute_order_totals([PricedLine(25.0, 2)], "UG")
        assert totals.items_price == 50.0
        assert totals.shipping_price == 0.0
        assert totals.is_free_shipping is True
        assert totals.tax_price == 9.0
        assert totals.total_price == 59.0
        assert totals.item_count == 2

    def test_tax_excludes_shipping(self):
        totals = compute_order_totals([PricedLine(30.0, 1)], "KE")
        assert totals.shipping_price == 15.0
        assert totals.tax_price == 4.8
        assert totals.total_price == 49.8

    def test_rounds_only_at_the_end(self):
        totals = compute_order_totals([PricedLine(19.99, 3)], "UG")
        assert totals.items_price == 59.97
        assert totals.tax_price == 10.79
        assert totals.total_price == 70.76

    def test_discount_is_clamped_to_merchandise(self):
        totals = compute_order_totals([PricedLine(25.0, 2)], "UG", coupon_discount=100.0)
        assert totals.discount == 50.0
        assert totals.total_price == 9.0

    def test_negative_discount_is_ignored(self):
        totals = compute_order_totals([PricedLine(10.0, 1)], "US", coupon_discount=-5.0)
        assert totals.discount == 0.0
        assert totals.total_price == 50.0

    def test_weight_feeds_shipping(self):
        totals = compute_order_totals([PricedLine(5.0, 2, weight=3.0)], "UG")
        assert totals.shipping_price == 7.0

    def test_empty_order_is_rejected(self):
        with pytest.raises(ValueError):
            compute_order_totals([], "UG")
