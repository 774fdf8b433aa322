"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement.
This enables swapping between FakeGateway (dev/test) and StripeGateway
(production) without changing any domain or application code.

Adapters raise ``TransientProcessorError`` when the processor cannot be
reached or refuses the request, and ``SignatureInvalid`` when a webhook
payload fails verification.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class PaymentIntent:
    """A charge intent registered with the processor."""

    id: str
    client_secret: str
    amount: int  # minor units
    currency: str
    status: str = "requires_payment_method"


@dataclass(frozen=True)
class ProviderEvent:
    """A verified webhook event. ``data`` is the event's subject object."""

    id: str | None
    type: str
    data: dict = field(default_factory=dict)
    created: int | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    provider: str = "stripe"

    @abstractmethod
    def create_intent(
        self,
        amount: int,
        currency: str,
        idempotency_key: str,
        metadata: dict | None = None,
    ) -> PaymentIntent:
        """Create (or return the existing) intent for ``idempotency_key``."""
        ...

    @abstractmethod
    def verify_and_parse_event(self, payload: bytes, signature: str) -> ProviderEvent:
        """Authenticate a raw webhook body and decode it."""
        ...
