"""Runtime settings read from the process environment.

``PROTEAN_ENV`` still selects the Protean configuration overlay; the values
below cover the collaborators Protean does not know about (payment processor,
stock database, notification sender).
"""

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class Settings:
    environment: str = "development"
    payment_provider: str = "fake"
    stripe_secret_key: str | None = None
    stripe_webhook_secret: str | None = None
    payment_timeout_seconds: float = 10.0
    stock_database_url: str | None = None
    webhook_retention_days: int = 90
    default_currency: str = "usd"
    order_number_prefix: str = "ORD"
    email_from: str = "orders@example.com"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    return int(raw) if raw else default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    return float(raw) if raw else default


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the settings for this process (read once, then cached)."""
    return Settings(
        environment=os.environ.get("PROTEAN_ENV", "development"),
        payment_provider=os.environ.get("PAYMENT_PROVIDER", "fake").lower(),
        stripe_secret_key=os.environ.get("STRIPE_SECRET_KEY") or None,
        stripe_webhook_secret=os.environ.get("STRIPE_WEBHOOK_SECRET") or None,
        payment_timeout_seconds=_env_float("PAYMENT_TIMEOUT_SECONDS", 10.0),
        stock_database_url=os.environ.get("STOCK_DATABASE_URL") or None,
        webhook_retention_days=_env_int("WEBHOOK_RETENTION_DAYS", 90),
        default_currency=os.environ.get("DEFAULT_CURRENCY", "usd").lower(),
        order_number_prefix=os.environ.get("ORDER_NUMBER_PREFIX", "ORD"),
        email_from=os.environ.get("EMAIL_FROM", "orders@example.com"),
    )


def reset_settings() -> None:
    """Forget cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()
