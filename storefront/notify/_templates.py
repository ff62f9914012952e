"""
Email templates — plain text plus HTML, values escaped.
"""

from __future__ import annotations

from dataclasses import dataclass
from html import escape

from storefront._types import format_money


@dataclass(frozen=True, slots=True)
class Email:
    subject: str
    text: str
    html: str


@dataclass(frozen=True, slots=True)
class Branding:
    store_name: str
    site_url: str
    support_email: str | None = None

    def footer_text(self) -> str:
        lines = ["--", self.store_name]
        if self.support_email:
            lines.append(f"questions? email {self.support_email}")
        return "\n".join(lines)

    def footer_html(self) -> str:
        parts = [f"<p>{escape(self.store_name)}</p>"]
        if self.support_email:
            address = escape(self.support_email)
            parts.append(f'<p>questions? email <a href="mailto:{address}">{address}</a></p>')
        return "\n".join(parts)


_PAGE = """<!DOCTYPE html>
<html>
<head>
  <style>
    body {{ font-family: monospace; line-height: 1.6; color: #000; background: #fff; }}
    .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
    .box {{ border: 3px solid #000; border-radius: 8px; padding: 20px; margin-bottom: 20px; }}
    .mono {{ background: #f5f5f5; padding: 15px; border: 2px solid #000; border-radius: 6px; font-weight: bold; }}
    .button {{ display: inline-block; background: #000; color: #fff; padding: 12px 24px; text-decoration: none; }}
    .footer {{ text-align: center; font-size: 12px; color: #666; }}
  </style>
</head>
<body>
  <div class="container">
    <div class="box">
      <h1>{title}</h1>
      <p>{lead}</p>
    </div>
    <div class="box">
{body}
    </div>
    <div class="footer">
{footer}
    </div>
  </div>
</body>
</html>"""


# ═══════════════════════════════════════════════════════════════════════════════
# Order Confirmation
# ═══════════════════════════════════════════════════════════════════════════════


def order_confirmation_email(
    order_number: str,
    order_id: str,
    total_amount: float,
    branding: Branding,
) -> Email:
    track_url = f"{branding.site_url}/track-order"
    total = format_money(total_amount)

    text = "\n".join([
        "Thank you for your order!",
        "",
        "Order Details:",
        "--------------",
        f"Order Number: {order_number}",
        f"Order ID: {order_id}",
        f"Total Amount: {total}",
        "",
        "Track Your Order:",
        "You can track your order status at any time by visiting:",
        track_url,
        "",
        f"Enter your Order ID: {order_id}",
        "",
        "Once your order ships, you'll be able to view tracking information.",
        "",
        f"Thank you for shopping with {branding.store_name}!",
        "",
        branding.footer_text(),
    ])

    body = "\n".join([
        "      <h2>Order Details</h2>",
        f"      <p><strong>Order Number:</strong> {escape(order_number)}</p>",
        f"      <p><strong>Total Amount:</strong> {escape(total)}</p>",
        "      <h2>Track Your Order</h2>",
        "      <p>Save this Order ID to track your shipment:</p>",
        f'      <div class="mono">{escape(order_id)}</div>',
        f'      <p><a class="button" href="{escape(track_url)}">Track Order</a></p>',
    ])

    html = _PAGE.format(
        title="[ ORDER CONFIRMED ]",
        lead="Thank you for your purchase!",
        body=body,
        footer=branding.footer_html(),
    )
    return Email(subject=f"Order Confirmation - {order_number}", text=text, html=html)


# ═══════════════════════════════════════════════════════════════════════════════
# Shipping Notice
# ═══════════════════════════════════════════════════════════════════════════════


def shipping_notice_email(
    order_number: str,
    customer_name: str | None,
    tracking_number: str,
    tracking_url: str,
    branding: Branding,
) -> Email:
    name = customer_name or "there"

    text = "\n".join([
        f"Hi {name},",
        "",
        "Great news! Your order has been shipped!",
        "",
        "Order Details:",
        "--------------",
        f"Order Number: {order_number}",
        f"Tracking Number: {tracking_number}",
        "",
        "Track Your Shipment:",
        tracking_url,
        "",
        "It may take a few hours for tracking information to become available with the carrier.",
        "",
        f"Thank you for shopping with {branding.store_name}!",
        "",
        branding.footer_text(),
    ])

    body = "\n".join([
        f"      <p>Hi {escape(name)},</p>",
        f"      <p>Your order <strong>{escape(order_number)}</strong> has been shipped and is on its way.</p>",
        "      <h2>Tracking Information</h2>",
        f'      <div class="mono">{escape(tracking_number)}</div>',
        f'      <p><a class="button" href="{escape(tracking_url)}">Track Your Package</a></p>',
    ])

    html = _PAGE.format(
        title="[ ORDER SHIPPED ]",
        lead="Your package is on its way!",
        body=body,
        footer=branding.footer_html(),
    )
    return Email(subject=f"Your Order Has Shipped - {order_number}", text=text, html=html)


__all__ = (
    "Email",
    "Branding",
    "order_confirmation_email",
    "shipping_notice_email",
)
