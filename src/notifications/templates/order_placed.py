"""Order placed template: sent right after checkout succeeds."""


class OrderPlacedTemplate:
    kind = "order_placed"

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        total = context.get("total_price", 0.0)
        currency = str(context.get("currency", "USD")).upper()
        lines = "\n".join(
            f"  {item['qty']} x {item['name']} @ {item['price']:.2f}" for item in context.get("items", [])
        )
        return {
            "subject": f"Order {order_number} received",
            "body": (
                f"Thanks for your order {order_number}.\n\n"
                f"{lines}\n\n"
                f"Order Total: {currency} {total:.2f}\n\n"
                "Complete payment to confirm your order. We'll email you again once it is paid."
            ),
        }
