"""Stock store port (abstract interface).

Every adapter must offer a single-statement conditional decrement: the
decrement happens only if the product is enabled, not deleted and has at
least ``quantity`` units. That guard is what keeps concurrent checkouts from
overselling, with or without transactions.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from contextlib import AbstractContextManager
from dataclasses import dataclass


@dataclass(frozen=True)
class ProductSnapshot:
    """Catalog fields frozen onto an order line at reservation time."""

    product_id: str
    name: str
    sku: str | None
    price: float
    image: str | None = None
    weight: float = 0.0


class StockWriter(ABC):
    """Operations available both on a store and inside one of its transactions."""

    @abstractmethod
    def decrement_if_available(self, product_id: str, quantity: int) -> bool:
        """Atomically take ``quantity`` units. Returns False when the guard fails."""
        ...

    @abstractmethod
    def increment(self, product_id: str, quantity: int) -> None:
        """Return ``quantity`` units to stock."""
        ...

    @abstractmethod
    def fetch_snapshots(self, product_ids: Iterable[str]) -> dict[str, ProductSnapshot]:
        """Snapshots of the enabled, non-deleted products among ``product_ids``."""
        ...


class StockStore(StockWriter):
    """Abstract stock store."""

    @abstractmethod
    def stock_level(self, product_id: str) -> int | None:
        """Units on hand, or None for an unknown product."""
        ...

    @abstractmethod
    def supports_transactions(self) -> bool:
        """Capability check: can this store commit several writes atomically?"""
        ...

    @abstractmethod
    def transaction(self) -> AbstractContextManager[StockWriter]:
        """Open a scope whose writes commit together or not at all.

        Raises ``TransactionsUnsupported`` when the capability is absent.
        """
        ...


def unique_ids(product_ids: Iterable[str]) -> Iterator[str]:
    seen = set()
    for product_id in product_ids:
        key = str(product_id)
        if key not in seen:
            seen.add(key)
            yield key
