"""Order cancellation template: sent when an order is cancelled."""


class OrderCancellationTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        body = f"Your order #{order_number} has been cancelled.\n\n"
        if context.get("reason"):
            body += f"Reason: {context['reason']}\n\n"
        if context.get("payment_status") == "paid":
            body += "A refund for your payment will be issued to your original payment method.\n\n"
        body += "If you have questions, please contact our support team."
        return {"subject": f"Order #{order_number} Cancelled", "body": body}
