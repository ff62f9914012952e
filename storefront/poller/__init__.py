"""
Poller — invoice status polling with a one-shot completion guard.

    from storefront import poller as P

    async with P.PaymentPoller(gateway, invoice_id, on_complete=settle) as poller:
        ...
    # both loops cancelled here
"""

from __future__ import annotations

from storefront.poller._poller import PaymentPoller, format_time, DEFAULT_TIME_LEFT
from storefront.poller._session import CheckoutSession

__all__ = (
    "PaymentPoller",
    "format_time",
    "DEFAULT_TIME_LEFT",
    "CheckoutSession",
)
