"""
BTCPay Greenfield client over httpx.

Non-2xx responses and transport failures raise GatewayError carrying a
public message and the upstream status. The upstream body is logged,
never returned.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from storefront._types import InvoiceId, OrderId
from storefront.errors import GatewayError
from storefront.gateway._types import (
    CreatedInvoice,
    Invoice,
    InvoiceStatus,
    PaymentMethodDetails,
)

logger = logging.getLogger(__name__)

METHOD_UNAVAILABLE_MESSAGE = (
    "The requested payment method is currently unavailable. "
    "Please try a different payment option."
)


class BTCPayClient:
    def __init__(
        self,
        host: str,
        store_id: str,
        api_key: str,
        *,
        allow_insecure: bool = False,
        expiration_minutes: int = 60,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._store_id = store_id
        self._expiration_minutes = expiration_minutes
        self._client = httpx.AsyncClient(
            base_url=host.rstrip("/"),
            headers={"Authorization": f"token {api_key}"},
            verify=not allow_insecure,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> BTCPayClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    # ═══════════════════════════════════════════════════════════════════════════
    # Invoices
    # ═══════════════════════════════════════════════════════════════════════════

    async def create_invoice(
        self,
        amount: float,
        currency: str,
        order_id: OrderId,
        buyer_email: str | None,
        payment_methods: Sequence[str],
    ) -> CreatedInvoice:
        body = {
            "amount": f"{amount:.2f}",
            "currency": currency,
            "metadata": {"orderId": order_id, "buyerEmail": buyer_email},
            "checkout": {
                "speedPolicy": "HighSpeed",
                "paymentMethods": list(payment_methods),
                "expirationMinutes": self._expiration_minutes,
            },
        }
        data = await self._request(
            "POST",
            self._invoices_path(),
            "Failed to create invoice",
            json=body,
            translate=True,
        )
        return CreatedInvoice(
            invoice_id=data["id"],
            checkout_link=data.get("checkoutLink", ""),
            status=InvoiceStatus.parse(data.get("status")),
            amount=str(data.get("amount", body["amount"])),
            currency=data.get("currency", currency),
        )

    async def get_invoice(self, invoice_id: InvoiceId) -> Invoice:
        data = await self._request(
            "GET",
            f"{self._invoices_path()}/{invoice_id}",
            "Failed to fetch invoice",
        )
        return Invoice(
            id=data["id"],
            status=InvoiceStatus.parse(data.get("status")),
            amount=str(data.get("amount", "")),
            currency=data.get("currency", ""),
            created_time=data.get("createdTime"),
            expiration_time=data.get("expirationTime"),
            checkout_link=data.get("checkoutLink"),
            metadata=data.get("metadata") or {},
        )

    async def get_payment_methods(self, invoice_id: InvoiceId) -> list[PaymentMethodDetails]:
        data = await self._request(
            "GET",
            f"{self._invoices_path()}/{invoice_id}/payment-methods",
            "Failed to fetch payment methods",
        )
        return [
            PaymentMethodDetails(
                payment_method=m.get("paymentMethod", ""),
                crypto_code=m.get("cryptoCode", ""),
                destination=m.get("destination", ""),
                payment_link=m.get("paymentLink", ""),
                rate=str(m.get("rate", "0")),
                amount=str(m.get("amount", "0")),
                due=str(m.get("due", "0")),
                total_paid=str(m.get("totalPaid", "0")),
                network_fee=str(m.get("networkFee", "0")),
            )
            for m in data
        ]

    # ═══════════════════════════════════════════════════════════════════════════
    # Internal
    # ═══════════════════════════════════════════════════════════════════════════

    def _invoices_path(self) -> str:
        return f"/api/v1/stores/{self._store_id}/invoices"

    async def _request(
        self,
        method: str,
        path: str,
        public_message: str,
        *,
        json: Any = None,
        translate: bool = False,
    ) -> Any:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.error("BTCPay %s %s transport error: %s", method, path, e)
            raise GatewayError(public_message, status_code=502, cause=e) from e

        if response.is_error:
            logger.error(
                "BTCPay %s %s returned %s: %s",
                method, path, response.status_code, response.text[:200],
            )
            message = public_message
            if translate and _mentions_method_unavailable(response):
                message = METHOD_UNAVAILABLE_MESSAGE
            raise GatewayError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            logger.error("BTCPay %s %s returned non-JSON body", method, path)
            raise GatewayError(public_message, status_code=502, cause=e) from e


def _mentions_method_unavailable(response: httpx.Response) -> bool:
    try:
        payload = response.json()
    except ValueError:
        return False
    message = payload.get("message") if isinstance(payload, dict) else None
    return isinstance(message, str) and "Payment method unavailable" in message


__all__ = ("BTCPayClient", "METHOD_UNAVAILABLE_MESSAGE")
