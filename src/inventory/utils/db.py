from sqlalchemy import create_engine

from inventory.store.sql import metadata


def setup_db(database_url: str):
    """Create the stock tables"""
    engine = create_engine(database_url)
    metadata.create_all(engine)
    return engine


def drop_db(database_url: str):
    """Drop the stock tables"""
    engine = create_engine(database_url)
    metadata.drop_all(engine)
