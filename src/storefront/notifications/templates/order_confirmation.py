"""Order confirmation template: sent once an order is committed."""


class OrderConfirmationTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        customer_name = context.get("customer_name", "there")
        lines = "\n".join(
            f"  {item['quantity']} x {item['name']} @ {item['price']} = {item['total']}"
            for item in context.get("items", [])
        )
        body = (
            f"Hi {customer_name},\n\n"
            f"Thank you for your order #{order_number}.\n\n"
            f"{lines}\n\n"
            f"Subtotal: {context.get('subtotal', '$0.00')}\n"
            f"Shipping ({context.get('shipping_method', 'Standard')}): {context.get('shipping_cost', '$0.00')}\n"
            f"Total: {context.get('total', '$0.00')}\n\n"
            f"Shipping to: {context.get('shipping_address', '')}\n"
        )
        if context.get("payment_pending"):
            body += (
                "\nYour order will be processed once we receive your bank transfer.\n"
                f"Reference: {context.get('transaction_id', 'N/A')}\n"
            )
        body += "\nWe'll notify you once your order ships."
        return {"subject": f"Order #{order_number} Confirmed", "body": body}
