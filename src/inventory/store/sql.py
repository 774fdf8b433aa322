"""SQLAlchemy stock store over a ``products`` table.

The conditional decrement is a single ``UPDATE ... WHERE count_in_stock >= :qty``
and succeeds only when exactly one row changed.
"""

from collections.abc import Iterable
from contextlib import contextmanager

import structlog
from sqlalchemy import (
    Boolean,
    Column,
    Engine,
    Float,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
    select,
    update,
)
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from inventory.store.port import ProductSnapshot, StockStore, StockWriter, unique_ids
from shared.errors import TransactionsUnsupported

logger = structlog.get_logger(__name__)

metadata = MetaData()

products = Table(
    "products",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("sku", String(64)),
    Column("price", Float, nullable=False),
    Column("count_in_stock", Integer, nullable=False, default=0),
    Column("image", String(512)),
    Column("weight", Float, nullable=False, default=0.0),
    Column("enabled", Boolean, nullable=False, default=True),
    Column("deleted", Boolean, nullable=False, default=False),
)


def _decrement(conn: Connection, product_id: str, quantity: int) -> bool:
    stmt = (
        update(products)
        .where(
            products.c.id == str(product_id),
            products.c.enabled.is_(True),
            products.c.deleted.is_(False),
            products.c.count_in_stock >= quantity,
        )
        .values(count_in_stock=products.c.count_in_stock - quantity)
    )
    return conn.execute(stmt).rowcount == 1


def _increment(conn: Connection, product_id: str, quantity: int) -> None:
    stmt = (
        update(products)
        .where(products.c.id == str(product_id))
        .values(count_in_stock=products.c.count_in_stock + quantity)
    )
    if conn.execute(stmt).rowcount != 1:
        raise KeyError(f"Unknown product {product_id}")


def _snapshots(conn: Connection, product_ids: Iterable[str]) -> dict[str, ProductSnapshot]:
    ids = list(unique_ids(product_ids))
    if not ids:
        return {}
    rows = conn.execute(
        select(products).where(
            products.c.id.in_(ids),
            products.c.enabled.is_(True),
            products.c.deleted.is_(False),
        )
    )
    return {
        row.id: ProductSnapshot(
            product_id=row.id,
            name=row.name,
            sku=row.sku,
            price=row.price,
            image=row.image,
            weight=row.weight or 0.0,
        )
        for row in rows
    }


class _SqlTransaction(StockWriter):
    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def decrement_if_available(self, product_id: str, quantity: int) -> bool:
        return _decrement(self._conn, product_id, quantity)

    def increment(self, product_id: str, quantity: int) -> None:
        _increment(self._conn, product_id, quantity)

    def fetch_snapshots(self, product_ids: Iterable[str]) -> dict[str, ProductSnapshot]:
        return _snapshots(self._conn, product_ids)


class SqlStockStore(StockStore):
    def __init__(self, engine: Engine, transactions_enabled: bool = True) -> None:
        self.engine = engine
        self.transactions_enabled = transactions_enabled

    @classmethod
    def from_url(cls, database_url: str, transactions_enabled: bool = True) -> "SqlStockStore":
        return cls(create_engine(database_url), transactions_enabled=transactions_enabled)

    def create_schema(self) -> None:
        metadata.create_all(self.engine)

    def drop_schema(self) -> None:
        metadata.drop_all(self.engine)

    def upsert_product(
        self,
        product_id: str,
        name: str,
        price: float,
        count_in_stock: int,
        sku: str | None = None,
        image: str | None = None,
        weight: float = 0.0,
        enabled: bool = True,
        deleted: bool = False,
    ) -> None:
        values = {
            "name": name,
            "sku": sku,
            "price": price,
            "count_in_stock": count_in_stock,
            "image": image,
            "weight": weight,
            "enabled": enabled,
            "deleted": deleted,
        }
        with self.engine.begin() as conn:
            changed = conn.execute(update(products).where(products.c.id == str(product_id)).values(**values))
            if changed.rowcount == 0:
                conn.execute(products.insert().values(id=str(product_id), **values))

    def decrement_if_available(self, product_id: str, quantity: int) -> bool:
        with self.engine.begin() as conn:
            return _decrement(conn, product_id, quantity)

    def increment(self, product_id: str, quantity: int) -> None:
        with self.engine.begin() as conn:
            _increment(conn, product_id, quantity)

    def fetch_snapshots(self, product_ids: Iterable[str]) -> dict[str, ProductSnapshot]:
        with self.engine.connect() as conn:
            return _snapshots(conn, product_ids)

    def stock_level(self, product_id: str) -> int | None:
        with self.engine.connect() as conn:
            return conn.execute(
                select(products.c.count_in_stock).where(products.c.id == str(product_id))
            ).scalar_one_or_none()

    def supports_transactions(self) -> bool:
        if not self.transactions_enabled:
            return False
        try:
            with self.engine.connect() as conn:
                trans = conn.begin()
                trans.rollback()
        except SQLAlchemyError as exc:
            logger.warning("stock_store_transaction_check_failed", error=str(exc))
            return False
        return True

    @contextmanager
    def transaction(self):
        if not self.transactions_enabled:
            raise TransactionsUnsupported("Stock database configured without transactions")
        with self.engine.begin() as conn:
            yield _SqlTransaction(conn)
