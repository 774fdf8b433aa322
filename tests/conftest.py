import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Selects the configuration environment before any settings are read.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ.pop("PAYMENT_PROVIDER", None)
    os.environ.pop("STOCK_DATABASE_URL", None)


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)
        elif "/bdd/" in str(test_path):
            item.add_marker(pytest.mark.bdd)


@pytest.fixture(autouse=True)
def reset_collaborators():
    """Every test starts with fresh settings, stock store, gateway and mail channel."""
    from inventory.store import reset_stock_store
    from notifications.channel import reset_email_channel
    from payments.gateway import reset_gateway
    from shared.config import reset_settings

    reset_settings()
    yield
    reset_stock_store()
    reset_gateway()
    reset_email_channel()
    reset_settings()


@pytest.fixture()
def stock_store():
    from inventory.store import set_stock_store
    from inventory.store.memory import InMemoryStockStore

    store = InMemoryStockStore()
    set_stock_store(store)
    return store


@pytest.fixture()
def gateway():
    from payments.gateway import set_gateway
    from payments.gateway.fake_adapter import FakeGateway

    fake = FakeGateway()
    set_gateway(fake)
    return fake


@pytest.fixture()
def mailbox():
    from notifications.channel import set_email_channel
    from notifications.channel.fake_email import FakeEmailAdapter

    fake = FakeEmailAdapter()
    set_email_channel(fake)
    return fake
