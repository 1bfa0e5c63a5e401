"""
Default customer email templates and rendering.

Templates use str.format style placeholders ({customer_name}); available
variables are customer_name, order_number, items, total, tracking_number and
carrier. Placeholders without a value render as an empty string; values
are HTML-escaped when rendering a body.
"""
import html
from typing import Any, Dict

TEMPLATE_VARIABLES = [
    "customer_name",
    "order_number",
    "items",
    "total",
    "tracking_number",
    "carrier",
]

DEFAULT_EMAIL_TEMPLATES: Dict[str, Dict[str, str]] = {
    "order_confirmation": {
        "subject": "Your Order #{order_number} is Confirmed",
        "body": (
            "<h2>Thank you for your order, {customer_name}!</h2>\n"
            "<p>We're pleased to confirm that we've received your order.</p>\n"
            "<h3>Order Summary:</h3>\n"
            "<p><strong>Order #:</strong> {order_number}</p>\n"
            "<p><strong>Items:</strong> {items}</p>\n"
            "<p><strong>Total:</strong> {total}</p>\n"
            "<p>We'll notify you when your order has been shipped.</p>\n"
            "<p>Thank you for shopping with us!</p>"
        ),
    },
    "shipping_confirmation": {
        "subject": "Your Order #{order_number} Has Shipped!",
        "body": (
            "<h2>Good news, {customer_name}!</h2>\n"
            "<p>Your order #{order_number} is on its way to you.</p>\n"
            "<p><strong>Tracking Number:</strong> {tracking_number}</p>\n"
            "<p><strong>Shipping Provider:</strong> {carrier}</p>\n"
            "<p>Thank you for shopping with us!</p>"
        ),
    },
    "order_cancelled": {
        "subject": "Your Order #{order_number} Has Been Cancelled",
        "body": (
            "<h2>Hello {customer_name},</h2>\n"
            "<p>Your order #{order_number} ({items}) has been cancelled.</p>\n"
            "<p>Any payment of {total} will be refunded to your original payment method.</p>\n"
            "<p>If you did not request this, please contact our support team.</p>"
        ),
    },
    "order_delivered": {
        "subject": "Your Order #{order_number} Has Been Delivered",
        "body": (
            "<h2>Hi {customer_name},</h2>\n"
            "<p>Your order #{order_number} has been delivered.</p>\n"
            "<p><strong>Items:</strong> {items}</p>\n"
            "<p>We hope you enjoy your purchase. Thank you for shopping with us!</p>"
        ),
    },
}


class _TemplateVariables(dict):
    def __missing__(self, key):
        return ""


def render_template(template: str, variables: Dict[str, Any], escape: bool = False) -> str:
    """Fill `{placeholder}` fields; unknown or None values become empty strings."""
    values = _TemplateVariables(
        {
            key: html.escape(str(value)) if escape else value
            for key, value in variables.items() if value is not None
        }
    )
    return template.format_map(values)
