"""Payment received template: sent once the processor confirms the charge."""


class PaymentReceivedTemplate:
    kind = "payment_received"

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        amount = context.get("amount", 0.0)
        currency = str(context.get("currency", "USD")).upper()
        receipt_url = context.get("receipt_url")
        body = f"Payment of {currency} {amount:.2f} has been received for order {order_number}.\n\n"
        if receipt_url:
            body += f"Receipt: {receipt_url}\n\n"
        body += "Your order is confirmed and will be prepared for shipping."
        return {"subject": f"Payment received for order {order_number}", "body": body}
