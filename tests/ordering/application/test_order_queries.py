"""Application tests for order reads and operator updates."""

import pytest
from ordering.order.order import Order, OrderStatus, ShippingStatus
from ordering.order.queries import get_order_for, list_orders_for, load_order
from ordering.order.status import UpdateOrderStatus, UpdateShipping
from protean import current_domain
from protean.exceptions import ValidationError
from shared.errors import NotOwner, OrderNotFound
from shared.principal import Principal


class TestOrderReads:
    def test_owner_reads_order(self, place):
        order = place(("prod-001", 1))
        assert get_order_for("cust-001", order.id).order_number == order.order_number

    def test_other_customer_is_refused(self, place):
        order = place(("prod-001", 1))
        with pytest.raises(NotOwner):
            get_order_for("cust-999", order.id)

    def test_missing_order(self):
        with pytest.raises(OrderNotFound):
            load_order("nope")

    def test_listing_is_paged_and_scoped(self, place):
        for _ in range(3):
            place(("prod-001", 1))
        place(("prod-001", 1), principal=Principal(user_id="cust-002"))

        first = list_orders_for("cust-001", page=1, limit=2)
        second = list_orders_for("cust-001", page=2, limit=2)

        assert first.total == 3
        assert first.pages == 2
        assert len(first.orders) == 2
        assert len(second.orders) == 1
        assert all(order.customer_id == "cust-001" for order in first.orders + second.orders)

    def test_listing_is_newest_first(self, place):
        older = place(("prod-001", 1))
        newer = place(("prod-001", 1))

        page = list_orders_for("cust-001")
        assert [order.id for order in page.orders] == [newer.id, older.id]

    @pytest.mark.parametrize("page, limit", [(0, 20), (1, 0), (1, 101)])
    def test_listing_bounds(self, page, limit):
        with pytest.raises(ValidationError):
            list_orders_for("cust-001", page=page, limit=limit)


class TestOperatorCommands:
    def test_cancel_pending_order(self, place):
        order = place(("prod-001", 1))
        status = current_domain.process(
            UpdateOrderStatus(order_id=order.id, status="cancelled", message="Out of delivery range"),
            asynchronous=False,
        )
        assert status == OrderStatus.CANCELLED.value
        assert current_domain.repository_for(Order).get(order.id).timeline[-1].message == "Out of delivery range"

    def test_confirm_is_rejected(self, place):
        order = place(("prod-001", 1))
        with pytest.raises(ValidationError):
            current_domain.process(UpdateOrderStatus(order_id=order.id, status="confirmed"), asynchronous=False)

    def test_update_shipping(self, place):
        order = place(("prod-001", 1))
        current_domain.process(
            UpdateShipping(order_id=order.id, courier="DHL", tracking_number="TRK-9", shipping_status="processing"),
            asynchronous=False,
        )

        stored = current_domain.repository_for(Order).get(order.id)
        assert stored.shipping.courier == "DHL"
        assert stored.shipping.tracking_number == "TRK-9"
        assert stored.shipping.status == ShippingStatus.PROCESSING.value
