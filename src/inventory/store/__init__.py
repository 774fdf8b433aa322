"""Stock store factory.

Provides get_stock_store() / set_stock_store() to swap implementations:
- InMemoryStockStore for development and testing
- SqlStockStore when STOCK_DATABASE_URL is configured
"""

from inventory.store.memory import InMemoryStockStore
from inventory.store.port import ProductSnapshot, StockStore
from shared.config import get_settings

_current_store: StockStore | None = None


def get_stock_store() -> StockStore:
    """Return the current stock store, building the configured one on first use."""
    global _current_store
    if _current_store is None:
        database_url = get_settings().stock_database_url
        if database_url:
            from inventory.store.sql import SqlStockStore

            _current_store = SqlStockStore.from_url(database_url)
        else:
            _current_store = InMemoryStockStore()
    return _current_store


def set_stock_store(store: StockStore) -> None:
    """Override the active stock store (useful for tests)."""
    global _current_store
    _current_store = store


def reset_stock_store() -> None:
    """Reset to the default store."""
    global _current_store
    _current_store = None


__all__ = [
    "InMemoryStockStore",
    "ProductSnapshot",
    "StockStore",
    "get_stock_store",
    "reset_stock_store",
    "set_stock_store",
]
