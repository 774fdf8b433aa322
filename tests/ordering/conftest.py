import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield

        from protean import current_domain

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


@pytest.fixture()
def customer():
    from shared.principal import Principal

    return Principal(user_id="cust-001", email="ada@example.com", is_verified=True)


@pytest.fixture()
def catalog(stock_store, gateway, mailbox):
    """A stocked store with the fake gateway and mailbox installed."""
    stock_store.add_product("prod-001", "Kitenge Shirt", price=25.0, count_in_stock=10, sku="KS-001")
    stock_store.add_product("prod-002", "Leather Sandals", price=40.0, count_in_stock=3, sku="LS-002", weight=1.5)
    stock_store.add_product("prod-003", "Bark Cloth Bag", price=12.5, count_in_stock=0, sku="BC-003")
    stock_store.add_product("prod-004", "Retired Mug", price=8.0, count_in_stock=5, enabled=False)
    return stock_store


@pytest.fixture()
def address():
    return {
        "line1": "Plot 12 Kampala Road",
        "city": "Kampala",
        "postal_code": "256",
        "country": "UG",
    }


@pytest.fixture()
def place(catalog, customer, address):
    """Place an order for ``customer``; lines are ``(product_id, qty)`` pairs."""
    from ordering.checkout.placement import PlacementRequest, place_order

    def _place(*lines, principal=None, coupon_code=None, shipping_method="standard", shipping_address=None):
        return place_order(
            principal or customer,
            PlacementRequest(
                items=[{"product_id": pid, "qty": qty} for pid, qty in lines],
                shipping_address=shipping_address or address,
                shipping_method=shipping_method,
                coupon_code=coupon_code,
            ),
        )

    return _place
