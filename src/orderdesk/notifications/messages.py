"""Order confirmation messages for the email and SMS channels."""

from html import escape


def _money(amount) -> str:
    amount = float(amount or 0)
    return f"{amount:.0f}" if amount.is_integer() else f"{amount:.2f}"


class OrderConfirmationEmail:
    @staticmethod
    def render(order: dict, restaurant_name: str) -> dict:
        number = order.get("order_number", "N/A")
        items = order.get("items") or []
        payment = (order.get("payment_method") or "").upper()
        total = _money(order.get("total_amount"))

        lines = [f"{item['item_name']} x {item['quantity']} = ₹{_money(item['price'] * item['quantity'])}" for item in items]
        body = (
            f"Dear {order.get('customer_name', '')},\n\n"
            "Thank you for your order! Your delicious biryani is being prepared with love.\n\n"
            f"Order Number: {number}\n"
            f"Payment Method: {payment}\n"
            f"Delivery Address: {order.get('delivery_address', '')}\n\n"
            "Items Ordered:\n" + "\n".join(f"  - {line}" for line in lines) + "\n\n"
            f"Total: ₹{total}\n\n"
            "Estimated Delivery Time: 30-45 minutes\n\n"
            f"Thank you for choosing {restaurant_name}!"
        )
        html_items = "".join(f"<li>{escape(line)}</li>" for line in lines)
        html_body = (
            f"<h1>{escape(restaurant_name)}</h1>"
            f"<h2>Dear {escape(str(order.get('customer_name', '')))},</h2>"
            f"<p><strong>Order Number:</strong> {escape(str(number))}</p>"
            f"<p><strong>Payment Method:</strong> {escape(payment)}</p>"
            f"<p><strong>Delivery Address:</strong> {escape(str(order.get('delivery_address', '')))}</p>"
            f"<ul>{html_items}</ul>"
            f"<p><strong>Total: ₹{total}</strong></p>"
        )
        return {
            "to": order.get("customer_email"),
            "subject": f"Order Confirmation - {number}",
            "body": body,
            "html_body": html_body,
        }


class OrderConfirmationSMS:
    @staticmethod
    def render(order: dict, restaurant_name: str) -> dict:
        return {
            "to": order.get("customer_phone"),
            "body": (
                f"Dear {order.get('customer_name', '')}, your order {order.get('order_number', 'N/A')} "
                f"has been placed successfully at {restaurant_name}! "
                f"Total: ₹{_money(order.get('total_amount'))}. "
                "Your delicious biryani will be delivered in 30-45 minutes. Thank you!"
            ),
        }
