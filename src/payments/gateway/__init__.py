"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing
- StripeGateway when PAYMENT_PROVIDER=stripe
"""

from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import PaymentGateway, PaymentIntent, ProviderEvent
from shared.config import get_settings
from shared.errors import PaymentsNotConfigured

_current_gateway: PaymentGateway | None = None


def _build_gateway() -> PaymentGateway:
    settings = get_settings()
    if settings.payment_provider == "stripe":
        if not settings.stripe_secret_key or not settings.stripe_webhook_secret:
            raise PaymentsNotConfigured()
        from payments.gateway.stripe_adapter import StripeGateway

        return StripeGateway(
            api_key=settings.stripe_secret_key,
            webhook_secret=settings.stripe_webhook_secret,
            timeout=settings.payment_timeout_seconds,
        )
    if settings.is_production:
        raise PaymentsNotConfigured("The fake gateway is not available in production")
    if settings.stripe_webhook_secret:
        return FakeGateway(webhook_secret=settings.stripe_webhook_secret)
    return FakeGateway()


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway. Defaults to FakeGateway."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _build_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None


__all__ = [
    "FakeGateway",
    "PaymentGateway",
    "PaymentIntent",
    "ProviderEvent",
    "get_gateway",
    "reset_gateway",
    "set_gateway",
]
