"""Checkout management CLI.

Usage:
    python src/manage.py setup-stock-db [--url URL]   # Create stock tables
    python src/manage.py drop-stock-db [--url URL]    # Drop stock tables
    python src/manage.py seed-product ID NAME PRICE STOCK [--sku SKU] [--weight KG]
    python src/manage.py purge-webhooks [--as-of ISO]  # Delete expired webhook ledger records
"""

import argparse
import sys
from datetime import datetime


def _database_url(url):
    from shared.config import get_settings

    database_url = url or get_settings().stock_database_url
    if not database_url:
        print("No stock database configured (set STOCK_DATABASE_URL or pass --url).")
        sys.exit(1)
    return database_url


def setup_stock_database(url=None):
    """Create the stock tables."""
    from inventory.utils.db import setup_db

    print("Creating stock database schema...")
    setup_db(_database_url(url))
    print("Done.")


def drop_stock_database(url=None):
    """Drop the stock tables."""
    from inventory.utils.db import drop_db

    print("Dropping stock database schema...")
    drop_db(_database_url(url))
    print("Done.")


def seed_product(product_id, name, price, count_in_stock, sku=None, weight=0.0, url=None):
    from inventory.store.sql import SqlStockStore

    store = SqlStockStore.from_url(_database_url(url))
    store.upsert_product(
        product_id=product_id,
        name=name,
        price=price,
        count_in_stock=count_in_stock,
        sku=sku,
        weight=weight,
    )
    print(f"  {product_id}: {count_in_stock} in stock at {price:.2f}")


def purge_webhooks(as_of=None):
    from ordering.domain import ordering
    from ordering.payment.retention import PurgeExpiredWebhookEvents

    ordering.init()
    with ordering.domain_context():
        purged = ordering.process(PurgeExpiredWebhookEvents(as_of=as_of), asynchronous=False)
    print(f"Purged {purged} expired webhook event(s).")


def main():
    parser = argparse.ArgumentParser(description="Checkout management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    setup_parser = subparsers.add_parser("setup-stock-db", help="Create the stock tables")
    setup_parser.add_argument("--url", help="Database URL (default: STOCK_DATABASE_URL)")

    drop_parser = subparsers.add_parser("drop-stock-db", help="Drop the stock tables")
    drop_parser.add_argument("--url", help="Database URL (default: STOCK_DATABASE_URL)")

    seed_parser = subparsers.add_parser("seed-product", help="Insert or update a stocked product")
    seed_parser.add_argument("product_id")
    seed_parser.add_argument("name")
    seed_parser.add_argument("price", type=float)
    seed_parser.add_argument("count_in_stock", type=int)
    seed_parser.add_argument("--sku")
    seed_parser.add_argument("--weight", type=float, default=0.0)
    seed_parser.add_argument("--url", help="Database URL (default: STOCK_DATABASE_URL)")

    purge_parser = subparsers.add_parser("purge-webhooks", help="Delete expired webhook ledger records")
    purge_parser.add_argument("--as-of", type=datetime.fromisoformat, help="Cutoff (default: now)")

    args = parser.parse_args()

    from ordering.utils.logging import configure_logging

    configure_logging()

    if args.command == "setup-stock-db":
        setup_stock_database(args.url)
    elif args.command == "drop-stock-db":
        drop_stock_database(args.url)
    elif args.command == "seed-product":
        seed_product(
            args.product_id,
            args.name,
            args.price,
            args.count_in_stock,
            sku=args.sku,
            weight=args.weight,
            url=args.url,
        )
    elif args.command == "purge-webhooks":
        purge_webhooks(args.as_of)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
