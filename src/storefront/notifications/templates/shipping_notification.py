"""Shipping notification template: sent when the order is handed to the carrier."""


class ShippingNotificationTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        body = (
            f"Great news! Your order #{order_number} has shipped.\n\n"
            f"Carrier: {context.get('carrier') or 'the carrier'}\n"
            f"Tracking Number: {context.get('tracking_number') or 'N/A'}\n"
        )
        if context.get("tracking_url"):
            body += f"Track your package: {context['tracking_url']}\n"
        return {"subject": "Your Order Has Shipped!", "body": body}
