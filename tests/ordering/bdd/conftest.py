"""Shared BDD fixtures and step definitions for checkout scenarios."""

import pytest
from ordering.order.order import Order
from protean import current_domain
from pytest_bdd import given, parsers, then


@pytest.fixture()
def checkout(stock_store, gateway, mailbox):
    """Mutable scenario state shared between steps."""
    return {"store": stock_store, "gateway": gateway, "error": None}


def stored_order(checkout):
    return current_domain.repository_for(Order).get(checkout["order_id"])


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the store stocks "{product_id}" at {price:f} with {count:d} units'))
def _(checkout, product_id, price, count):
    checkout["store"].add_product(product_id, f"Product {product_id}", price=price, count_in_stock=count)


@given(parsers.cfparse("the stock store {capability} transactions"))
def _(checkout, capability):
    checkout["store"].configure(transactions_enabled=capability == "supports")


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order is "{status}"'))
def _(checkout, status):
    assert stored_order(checkout).status == status


@then(parsers.cfparse('"{product_id}" has {count:d} units left'))
def _(checkout, product_id, count):
    assert checkout["store"].stock_level(product_id) == count
