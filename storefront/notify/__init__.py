"""
Notify — transactional email.

    from storefront import notify as N

    dispatcher = N.NotificationDispatcher(orders, N.MailgunMailer(key, domain, sender), branding)
    await dispatcher.send_order_confirmation(order)
    report = await dispatcher.run_shipping_sweep()
"""

from __future__ import annotations

from storefront.notify._templates import (
    Email,
    Branding,
    order_confirmation_email,
    shipping_notice_email,
)
from storefront.notify._mailer import Mailer, MailgunMailer
from storefront.notify._dispatch import SweepReport, NotificationDispatcher

__all__ = (
    "Email",
    "Branding",
    "order_confirmation_email",
    "shipping_notice_email",
    "Mailer",
    "MailgunMailer",
    "SweepReport",
    "NotificationDispatcher",
)
