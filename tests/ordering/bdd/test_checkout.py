"""BDD tests for checkout and payment reconciliation."""

from ordering.checkout.placement import PlacementRequest, place_order
from ordering.order.order import Order
from ordering.payment.intent import CreatePaymentIntent
from ordering.payment.webhook import WebhookProcessor
from protean import current_domain
from pytest_bdd import given, parsers, scenarios, then, when
from shared.errors import InsufficientStock
from shared.principal import Principal

scenarios("features/checkout.feature")

CUSTOMER = Principal(user_id="cust-bdd", email="bdd@example.com", is_verified=True)


def stored_order(checkout):
    return current_domain.repository_for(Order).get(checkout["order_id"])


def _place(checkout, lines, country="UG"):
    order = place_order(
        CUSTOMER,
        PlacementRequest(
            items=[{"product_id": pid, "qty": qty} for pid, qty in lines],
            shipping_address={"line1": "Plot 1", "city": "Kampala", "country": country},
        ),
    )
    checkout["order_id"] = str(order.id)


def _deliver(checkout, event_type, data):
    gateway = checkout["gateway"]
    payload = gateway.build_event(event_type, data)
    checkout["last_payload"] = payload
    return WebhookProcessor().handle(payload, gateway.sign(payload))


def _report_success(checkout, amount, currency):
    data = {
        "id": checkout["intent_id"],
        "amount_received": amount,
        "currency": currency,
        "metadata": {"order_id": checkout["order_id"]},
    }
    checkout["ack"] = _deliver(checkout, "payment_intent.succeeded", data)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the customer has placed an order for {qty:d} of "{product_id}"'))
def _(checkout, qty, product_id):
    _place(checkout, [(product_id, qty)])


@given("a payment intent was created for the order")
def _(checkout):
    result = current_domain.process(
        CreatePaymentIntent(
            order_id=checkout["order_id"],
            requester_id=CUSTOMER.user_id,
            requester_verified=True,
        ),
        asynchronous=False,
    )
    checkout["intent_id"] = result["provider_intent_id"]


@given(parsers.cfparse('the processor reported the payment succeeded for {amount:d} "{currency}"'))
def _(checkout, amount, currency):
    _report_success(checkout, amount, currency)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the customer orders {qty:d} of "{product_id}" shipped to "{country}"'))
def _(checkout, qty, product_id, country):
    _place(checkout, [(product_id, qty)], country=country)


@when(parsers.cfparse('the customer orders {first_qty:d} of "{first}" and {second_qty:d} of "{second}"'))
def _(checkout, first_qty, first, second_qty, second):
    try:
        _place(checkout, [(first, first_qty), (second, second_qty)])
    except InsufficientStock as exc:
        checkout["error"] = exc


@when(parsers.cfparse('the processor reports the payment succeeded for {amount:d} "{currency}"'))
def _(checkout, amount, currency):
    _report_success(checkout, amount, currency)


@when("the processor redelivers the same event")
def _(checkout):
    gateway = checkout["gateway"]
    payload = checkout["last_payload"]
    checkout["ack"] = WebhookProcessor().handle(payload, gateway.sign(payload))


@when(parsers.cfparse("the processor reports a refund of {amount:d}"))
def _(checkout, amount):
    data = {"id": "ch_bdd", "payment_intent": checkout["intent_id"], "amount_refunded": amount}
    _deliver(checkout, "charge.refunded", data)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the order total is {total:f}"))
def _(checkout, total):
    assert stored_order(checkout).pricing.total_price == total


@then("the order is rejected for insufficient stock")
def _(checkout):
    assert isinstance(checkout["error"], InsufficientStock)
    assert current_domain.repository_for(Order).count_for_customer(CUSTOMER.user_id) == 0


@then("the order is paid")
def _(checkout):
    assert stored_order(checkout).is_paid is True


@then("the order is not paid")
def _(checkout):
    assert stored_order(checkout).is_paid is False


@then(parsers.cfparse('the payment failed with "{reason}"'))
def _(checkout, reason):
    order = stored_order(checkout)
    assert order.payment.status == "failed"
    assert order.payment.failure_reason == reason


@then("the redelivery is acknowledged as a duplicate")
def _(checkout):
    assert checkout["ack"] == {"received": True, "duplicate": True}


@then(parsers.cfparse("the order timeline has {count:d} entries"))
def _(checkout, count):
    assert len(stored_order(checkout).timeline) == count
