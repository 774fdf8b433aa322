"""Stock reservation strategies.

An order attempt reserves every line exactly once, either inside a store
transaction or, on stores without one, by decrementing line by line and
handing stock back if anything later fails. Callers use both strategies the
same way:

    with strategy.reserve(lines) as snapshots:
        ...  # price from snapshots, persist the order

If the body raises, the reservation is undone and the error propagates. Both
strategies raise the same errors for the same inputs.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

import structlog

from inventory.store.port import ProductSnapshot, StockStore, StockWriter
from shared.errors import InsufficientStock, ProductUnavailable

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ReservationLine:
    product_id: str
    quantity: int


def merge_lines(lines: Iterable[ReservationLine]) -> list[ReservationLine]:
    """Combine lines for the same product, keeping first-seen order."""
    totals: dict[str, int] = {}
    for line in lines:
        totals[str(line.product_id)] = totals.get(str(line.product_id), 0) + line.quantity
    return [ReservationLine(product_id=pid, quantity=qty) for pid, qty in totals.items()]


def _snapshot_all(writer: StockWriter, lines: list[ReservationLine]) -> dict[str, ProductSnapshot]:
    snapshots = writer.fetch_snapshots(line.product_id for line in lines)
    missing = [line.product_id for line in lines if line.product_id not in snapshots]
    if missing:
        raise ProductUnavailable(product_ids=missing)
    return snapshots


class ReservationStrategy(ABC):
    name: str = ""

    def __init__(self, store: StockStore) -> None:
        self.store = store

    @abstractmethod
    def reserve(self, lines: Iterable[ReservationLine]) -> Iterator[dict[str, ProductSnapshot]]:
        """Context manager yielding product snapshots keyed by product id."""
        ...


class TransactionalReservation(ReservationStrategy):
    name = "transactional"

    @contextmanager
    def reserve(self, lines):
        lines = merge_lines(lines)
        with self.store.transaction() as tx:
            for line in lines:
                if not tx.decrement_if_available(line.product_id, line.quantity):
                    logger.info("stock_reservation_rejected", product_id=line.product_id, quantity=line.quantity)
                    raise InsufficientStock(product_id=line.product_id)
            yield _snapshot_all(tx, lines)


class CompensatingReservation(ReservationStrategy):
    name = "compensating"

    @contextmanager
    def reserve(self, lines):
        lines = merge_lines(lines)
        reserved: list[ReservationLine] = []
        try:
            for line in lines:
                if not self.store.decrement_if_available(line.product_id, line.quantity):
                    logger.info("stock_reservation_rejected", product_id=line.product_id, quantity=line.quantity)
                    raise InsufficientStock(product_id=line.product_id)
                reserved.append(line)
            yield _snapshot_all(self.store, lines)
        except Exception:
            self.release(reserved)
            raise

    def release(self, reserved: list[ReservationLine]) -> None:
        """Best-effort: every line is attempted even if an earlier one fails."""
        for line in reversed(reserved):
            try:
                self.store.increment(line.product_id, line.quantity)
            except Exception:
                logger.exception(
                    "stock_compensation_failed",
                    product_id=line.product_id,
                    quantity=line.quantity,
                )


def select_reservation_strategy(store: StockStore) -> ReservationStrategy:
    """Ask the store once and pick the matching strategy."""
    if store.supports_transactions():
        strategy: ReservationStrategy = TransactionalReservation(store)
    else:
        strategy = CompensatingReservation(store)
    logger.debug("stock_reservation_strategy_selected", strategy=strategy.name)
    return strategy
