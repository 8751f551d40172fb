"""Order status update template: sent when fulfilment status changes."""


class StatusUpdateTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        status = str(context.get("new_status", "updated")).capitalize()
        return {
            "subject": f"Order #{order_number} Update: {status}",
            "body": (
                f"Hi {context.get('customer_name', 'there')},\n\n"
                f"The status of your order #{order_number} is now: {status}.\n\n"
                "You can track your order at any time with your order number and email."
            ),
        }
