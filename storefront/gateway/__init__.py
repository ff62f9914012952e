"""
Payment-invoice gateway.

    from storefront import gateway as G

    async with G.BTCPayClient(host, store_id, api_key) as btcpay:
        created = await btcpay.create_invoice(
            75.0, "USD", order.id, "a@b.co", G.payment_methods_for(G.CryptoPreference.MONERO),
        )
        invoice = await btcpay.get_invoice(created.invoice_id)
        if invoice.status.is_settled:
            ...
"""

from __future__ import annotations

from storefront.gateway._types import (
    InvoiceStatusKind,
    InvoiceStatus,
    CryptoPreference,
    BITCOIN_METHODS,
    MONERO_METHODS,
    payment_methods_for,
    CreatedInvoice,
    Invoice,
    QR_SERVICE_URL,
    PaymentMethodDetails,
    InvoiceGateway,
)
from storefront.gateway._client import BTCPayClient, METHOD_UNAVAILABLE_MESSAGE

__all__ = (
    "InvoiceStatusKind",
    "InvoiceStatus",
    "CryptoPreference",
    "BITCOIN_METHODS",
    "MONERO_METHODS",
    "payment_methods_for",
    "CreatedInvoice",
    "Invoice",
    "QR_SERVICE_URL",
    "PaymentMethodDetails",
    "InvoiceGateway",
    "BTCPayClient",
    "METHOD_UNAVAILABLE_MESSAGE",
)
