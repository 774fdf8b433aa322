"""Payment intent creation: command and handler.

Asks the processor for a charge intent covering the order's grand total and
binds it to the order. The idempotency key is derived from the order, the
amount and the currency, so a client retrying after a timeout gets the
same intent back instead of a second one.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering
from ordering.order.order import Order
from ordering.pricing.money import to_minor_units
from payments.gateway import get_gateway
from shared.errors import InvalidAmount, OrderNotFound, Unauthorized


def intent_idempotency_key(order_id, amount: int, currency: str) -> str:
    return f"pi:create:{order_id}:{amount}:{currency}"


@ordering.command(part_of="Order")
class CreatePaymentIntent:
    order_id = Identifier(required=True)
    requester_id = Identifier(required=True)
    requester_verified = Boolean(default=False)
    currency = String(max_length=3, default="usd")


@ordering.command_handler(part_of=Order)
class PaymentIntentHandler:
    @handle(CreatePaymentIntent)
    def create_payment_intent(self, command):
        if not command.requester_verified:
            raise Unauthorized()

        repo = current_domain.repository_for(Order)
        try:
            order = repo.get(command.order_id)
        except ObjectNotFoundError as exc:
            raise OrderNotFound(order_id=str(command.order_id)) from exc

        order.assert_owned_by(command.requester_id)
        order.assert_payable()

        amount = to_minor_units(order.pricing.total_price or 0.0)
        if amount <= 0:
            raise InvalidAmount("Order total is invalid for payment")

        currency = (command.currency or "usd").lower()
        gateway = get_gateway()
        intent = gateway.create_intent(
            amount=amount,
            currency=currency,
            idempotency_key=intent_idempotency_key(order.id, amount, currency),
            metadata={"order_id": str(order.id), "user_id": str(command.requester_id)},
        )

        order.bind_payment_intent(intent.id, amount=amount, currency=currency)
        repo.add(order)

        logger.info("payment_intent_bound", order_id=str(order.id), intent_id=intent.id, amount=amount)
        return {"provider_intent_id": intent.id, "client_secret": intent.client_secret}
