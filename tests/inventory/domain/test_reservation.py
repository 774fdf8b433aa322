"""Tests for the stock reservation strategies."""

import threading

import pytest
from inventory.reservation import (
    CompensatingReservation,
    ReservationLine,
    TransactionalReservation,
    merge_lines,
    select_reservation_strategy,
)
from inventory.store.memory import InMemoryStockStore
from shared.errors import InsufficientStock, ProductUnavailable


@pytest.fixture()
def store():
    store = InMemoryStockStore()
    store.add_product("prod-001", "Kitenge Shirt", price=25.0, count_in_stock=10)
    store.add_product("prod-002", "Leather Sandals", price=40.0, count_in_stock=3)
    return store


@pytest.fixture(params=[TransactionalReservation, CompensatingReservation], ids=["transactional", "compensating"])
def strategy(request, store):
    return request.param(store)


def _lines(*pairs):
    return [ReservationLine(product_id=pid, quantity=qty) for pid, qty in pairs]


class TestStrategySelection:
    def test_transactional_store(self, store):
        assert isinstance(select_reservation_strategy(store), TransactionalReservation)

    def test_store_without_transactions(self, store):
        store.configure(transactions_enabled=False)
        assert isinstance(select_reservation_strategy(store), CompensatingReservation)


class TestMergeLines:
    def test_same_product_is_combined(self):
        merged = merge_lines(_lines(("a", 1), ("b", 2), ("a", 3)))
        assert merged == _lines(("a", 4), ("b", 2))


class TestReservation:
    def test_successful_reservation(self, strategy, store):
        with strategy.reserve(_lines(("prod-001", 2), ("prod-002", 1))) as snapshots:
            assert snapshots["prod-001"].price == 25.0
            assert snapshots["prod-002"].name == "Leather Sandals"

        assert store.stock_level("prod-001") == 8
        assert store.stock_level("prod-002") == 2

    def test_insufficient_stock_undoes_earlier_lines(self, strategy, store):
        with pytest.raises(InsufficientStock):
            with strategy.reserve(_lines(("prod-001", 2), ("prod-002", 4))):
                pass

        assert store.stock_level("prod-001") == 10
        assert store.stock_level("prod-002") == 3

    def test_failure_in_caller_work_undoes_reservation(self, strategy, store):
        with pytest.raises(RuntimeError):
            with strategy.reserve(_lines(("prod-001", 2))):
                raise RuntimeError("order could not be saved")

        assert store.stock_level("prod-001") == 10

    def test_product_hidden_after_decrement(self, strategy, store, monkeypatch):
        monkeypatch.setattr(store, "fetch_snapshots", lambda ids: {})
        with pytest.raises(ProductUnavailable):
            with strategy.reserve(_lines(("prod-001", 1))):
                pass

        assert store.stock_level("prod-001") == 10


class TestCompensation:
    def test_failed_increment_does_not_stop_the_rest(self, store, monkeypatch):
        strategy = CompensatingReservation(store)
        real_increment = store.increment
        attempted = []

        def _flaky_increment(product_id, quantity):
            attempted.append(product_id)
            if product_id == "prod-002":
                raise ConnectionError("stock database unreachable")
            real_increment(product_id, quantity)

        monkeypatch.setattr(store, "increment", _flaky_increment)
        with pytest.raises(RuntimeError):
            with strategy.reserve(_lines(("prod-001", 2), ("prod-002", 1))):
                raise RuntimeError("order could not be saved")

        assert attempted == ["prod-002", "prod-001"]
        assert store.stock_level("prod-001") == 10
        assert store.stock_level("prod-002") == 2


class TestConcurrency:
    @pytest.mark.parametrize("transactions", [True, False], ids=["transactional", "compensating"])
    def test_no_overselling(self, store, transactions):
        store.configure(transactions_enabled=transactions)
        strategy = select_reservation_strategy(store)
        successes = []
        failures = []
        barrier = threading.Barrier(12)

        def _buy():
            barrier.wait()
            try:
                with strategy.reserve(_lines(("prod-002", 1))):
                    successes.append(1)
            except InsufficientStock:
                failures.append(1)

        threads = [threading.Thread(target=_buy) for _ in range(12)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(successes) == 3
        assert len(failures) == 9
        assert store.stock_level("prod-002") == 0
