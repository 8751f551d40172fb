"""Delivery confirmation template: sent when the order is delivered."""


class DeliveryConfirmationTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        return {
            "subject": "Your Order Has Been Delivered",
            "body": (
                f"Your order #{order_number} has been delivered.\n\n"
                "We hope you enjoy your purchase! If you have any issues, "
                "please reach out to our support team."
            ),
        }
