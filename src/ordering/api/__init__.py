"""Checkout API package."""

from ordering.api.errors import register_exception_handlers
from ordering.api.routes import (
    admin_router,
    order_router,
    payment_router,
    shipping_router,
    webhook_router,
)

__all__ = [
    "admin_router",
    "order_router",
    "payment_router",
    "register_exception_handlers",
    "shipping_router",
    "webhook_router",
]
