"""Tests for customer notifications and their templates."""

import pytest
from notifications.notifier import notify
from notifications.templates import get_template
from notifications.templates.order_placed import OrderPlacedTemplate
from notifications.templates.payment_received import PaymentReceivedTemplate

ORDER_CONTEXT = {
    "order_number": "ORD-20260101-ABC123",
    "total_price": 59.0,
    "currency": "usd",
    "items": [{"name": "Kitenge Shirt", "qty": 2, "price": 25.0}],
}


class TestNotify:
    def test_sends_rendered_mail(self, mailbox):
        assert notify("order_placed", "ada@example.com", ORDER_CONTEXT) is True

        mail = mailbox.sent_emails[0]
        assert mail["to"] == "ada@example.com"
        assert mail["sender"] == "orders@example.com"
        assert mail["subject"] == "Order ORD-20260101-ABC123 received"

    def test_skipped_without_recipient(self, mailbox):
        assert notify("order_placed", None, ORDER_CONTEXT) is False
        assert mailbox.sent_emails == []

    def test_transport_exception_is_contained(self, mailbox):
        mailbox.configure(should_raise=True)
        assert notify("order_placed", "ada@example.com", ORDER_CONTEXT) is False

    def test_failed_delivery(self, mailbox):
        mailbox.configure(should_succeed=False)
        assert notify("order_placed", "ada@example.com", ORDER_CONTEXT) is False
        assert mailbox.sent_emails == []

    def test_unknown_kind(self, mailbox):
        assert notify("order_shipped", "ada@example.com", ORDER_CONTEXT) is False


class TestTemplates:
    def test_registry_lookup(self):
        assert get_template("order_placed") is OrderPlacedTemplate
        assert get_template("payment_received") is PaymentReceivedTemplate

    def test_unknown_template(self):
        with pytest.raises(ValueError):
            get_template("nope")

    def test_order_placed_lists_items(self):
        content = OrderPlacedTemplate.render(ORDER_CONTEXT)
        assert "2 x Kitenge Shirt @ 25.00" in content["body"]
        assert "USD 59.00" in content["body"]

    def test_payment_received_with_receipt(self):
        content = PaymentReceivedTemplate.render(
            {"order_number": "ORD-1", "amount": 59.0, "currency": "usd", "receipt_url": "https://pay.example/r/1"}
        )
        assert content["subject"] == "Payment received for order ORD-1"
        assert "Receipt: https://pay.example/r/1" in content["body"]

    def test_payment_received_without_receipt(self):
        content = PaymentReceivedTemplate.render({"order_number": "ORD-1", "amount": 59.0})
        assert "Receipt" not in content["body"]
