"""In-memory stock store for development and tests.

Each conditional decrement runs under the store lock, so concurrent threads
can never take more units than exist. A transaction holds the lock for its
whole scope and restores the previous counts if the scope fails.
"""

import threading
from collections.abc import Iterable
from contextlib import contextmanager
from dataclasses import dataclass, field

from inventory.store.port import ProductSnapshot, StockStore, StockWriter, unique_ids
from shared.errors import TransactionsUnsupported


@dataclass
class StockedProduct:
    product_id: str
    name: str
    price: float
    count_in_stock: int = 0
    sku: str | None = None
    images: list[str] = field(default_factory=list)
    weight: float = 0.0
    enabled: bool = True
    deleted: bool = False

    @property
    def is_sellable(self) -> bool:
        return self.enabled and not self.deleted

    def snapshot(self) -> ProductSnapshot:
        return ProductSnapshot(
            product_id=self.product_id,
            name=self.name,
            sku=self.sku,
            price=self.price,
            image=self.images[0] if self.images else None,
            weight=self.weight,
        )


class _Journal(StockWriter):
    """Transaction view that records every write so it can be undone."""

    def __init__(self, store: "InMemoryStockStore") -> None:
        self._store = store
        self._undo: list[tuple[str, int]] = []

    def decrement_if_available(self, product_id: str, quantity: int) -> bool:
        taken = self._store.decrement_if_available(product_id, quantity)
        if taken:
            self._undo.append((str(product_id), quantity))
        return taken

    def increment(self, product_id: str, quantity: int) -> None:
        self._store.increment(product_id, quantity)
        self._undo.append((str(product_id), -quantity))

    def fetch_snapshots(self, product_ids: Iterable[str]) -> dict[str, ProductSnapshot]:
        return self._store.fetch_snapshots(product_ids)

    def rollback(self) -> None:
        for product_id, quantity in reversed(self._undo):
            self._store._products[product_id].count_in_stock += quantity
        self._undo.clear()


class InMemoryStockStore(StockStore):
    def __init__(self, transactions_enabled: bool = True) -> None:
        self.transactions_enabled = transactions_enabled
        self._products: dict[str, StockedProduct] = {}
        self._lock = threading.RLock()

    def configure(self, transactions_enabled: bool = True) -> None:
        """Toggle transaction support at runtime (exercises both reservation paths)."""
        self.transactions_enabled = transactions_enabled

    def add_product(
        self,
        product_id: str,
        name: str,
        price: float,
        count_in_stock: int,
        sku: str | None = None,
        images: list[str] | None = None,
        weight: float = 0.0,
        enabled: bool = True,
        deleted: bool = False,
    ) -> StockedProduct:
        product = StockedProduct(
            product_id=str(product_id),
            name=name,
            price=price,
            count_in_stock=count_in_stock,
            sku=sku,
            images=list(images or []),
            weight=weight,
            enabled=enabled,
            deleted=deleted,
        )
        with self._lock:
            self._products[product.product_id] = product
        return product

    def decrement_if_available(self, product_id: str, quantity: int) -> bool:
        with self._lock:
            product = self._products.get(str(product_id))
            if product is None or not product.is_sellable or product.count_in_stock < quantity:
                return False
            product.count_in_stock -= quantity
            return True

    def increment(self, product_id: str, quantity: int) -> None:
        with self._lock:
            product = self._products.get(str(product_id))
            if product is None:
                raise KeyError(f"Unknown product {product_id}")
            product.count_in_stock += quantity

    def fetch_snapshots(self, product_ids: Iterable[str]) -> dict[str, ProductSnapshot]:
        with self._lock:
            return {
                product_id: self._products[product_id].snapshot()
                for product_id in unique_ids(product_ids)
                if product_id in self._products and self._products[product_id].is_sellable
            }

    def stock_level(self, product_id: str) -> int | None:
        product = self._products.get(str(product_id))
        return None if product is None else product.count_in_stock

    def supports_transactions(self) -> bool:
        return self.transactions_enabled

    @contextmanager
    def transaction(self):
        if not self.transactions_enabled:
            raise TransactionsUnsupported("In-memory store configured without transactions")
        with self._lock:
            journal = _Journal(self)
            try:
                yield journal
            except Exception:
                journal.rollback()
                raise

    def reset(self) -> None:
        with self._lock:
            self._products.clear()
        self.transactions_enabled = True
