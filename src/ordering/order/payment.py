"""Order payment outcomes: commands and handler.

These commands are issued by the webhook processor once a processor event
has been verified and claimed. Each handler is a no-op (not an error) when
the order has already moved past the reported outcome, so redelivered events
change nothing.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering
from ordering.order.order import Order, PaymentOutcome

ORDER_MISSING = "order_missing"
NO_CHANGE = "no_change"


@ordering.command(part_of="Order")
class ConfirmPayment:
    order_id = Identifier(required=True)
    intent_id = String(required=True, max_length=255)
    amount_received = Integer()  # minor units
    currency = String(max_length=3)
    charge_id = String(max_length=255)
    receipt_url = String(max_length=1024)
    payment_method = String(max_length=50)


@ordering.command(part_of="Order")
class RecordPaymentFailure:
    order_id = Identifier(required=True)
    intent_id = String(max_length=255)
    reason = String(max_length=500)


@ordering.command(part_of="Order")
class RecordRefund:
    """Refund events carry the intent id, not the order id."""

    intent_id = String(required=True, max_length=255)
    amount = Integer()  # minor units
    reason = String(max_length=500)
    charge_id = String(max_length=255)


@ordering.command_handler(part_of=Order)
class PaymentOutcomeHandler:
    @handle(ConfirmPayment)
    def confirm_payment(self, command):
        repo = current_domain.repository_for(Order)
        try:
            order = repo.get(command.order_id)
        except ObjectNotFoundError:
            logger.warning("payment_for_unknown_order", order_id=command.order_id, intent_id=command.intent_id)
            return ORDER_MISSING

        outcome = order.confirm_payment(
            intent_id=command.intent_id,
            amount_received=command.amount_received,
            currency=command.currency,
            charge_id=command.charge_id,
            receipt_url=command.receipt_url,
            method=command.payment_method,
        )
        if outcome == PaymentOutcome.IGNORED and not order.is_paid:
            # Settled money against a closed order needs an operator refund
            logger.warning(
                "payment_on_closed_order",
                order_id=command.order_id,
                status=order.status,
                intent_id=command.intent_id,
                amount=command.amount_received,
            )
            return outcome.value

        repo.add(order)
        logger.info("payment_outcome_applied", order_id=command.order_id, outcome=outcome.value)
        return outcome.value

    @handle(RecordPaymentFailure)
    def record_payment_failure(self, command):
        repo = current_domain.repository_for(Order)
        try:
            order = repo.get(command.order_id)
        except ObjectNotFoundError:
            logger.warning("payment_for_unknown_order", order_id=command.order_id, intent_id=command.intent_id)
            return ORDER_MISSING

        if not order.record_payment_failure(intent_id=command.intent_id, reason=command.reason):
            return NO_CHANGE
        repo.add(order)
        return "failed"

    @handle(RecordRefund)
    def record_refund(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.find_by_intent_id(command.intent_id)
        if order is None:
            logger.warning("refund_for_unknown_intent", intent_id=command.intent_id)
            return ORDER_MISSING

        if not order.record_refund(amount=command.amount, reason=command.reason, charge_id=command.charge_id):
            return NO_CHANGE
        repo.add(order)
        return "refunded"
