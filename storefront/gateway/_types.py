"""
Gateway types — invoice status variant, invoice records, the gateway protocol.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol
from urllib.parse import quote

from storefront._types import InvoiceId, OrderId

# ═══════════════════════════════════════════════════════════════════════════════
# InvoiceStatus — local tagged variant over the processor's vocabulary
# ═══════════════════════════════════════════════════════════════════════════════


class InvoiceStatusKind(StrEnum):
    NEW = "New"
    PROCESSING = "Processing"
    SETTLED = "Settled"
    EXPIRED = "Expired"
    UNKNOWN = "Unknown"


@dataclass(frozen=True, slots=True)
class InvoiceStatus:
    """
    Observed invoice status.

    `raw` keeps the processor's string, so labels we don't model
    ("Invalid", future additions) survive as UNKNOWN without being lost.
    """

    kind: InvoiceStatusKind
    raw: str

    @staticmethod
    def parse(raw: str | None) -> InvoiceStatus:
        raw = raw or ""
        match raw:
            case "New":
                kind = InvoiceStatusKind.NEW
            case "Processing":
                kind = InvoiceStatusKind.PROCESSING
            case "Settled":
                kind = InvoiceStatusKind.SETTLED
            case "Expired":
                kind = InvoiceStatusKind.EXPIRED
            case _:
                kind = InvoiceStatusKind.UNKNOWN
        return InvoiceStatus(kind, raw)

    @property
    def is_settled(self) -> bool:
        """Processing counts as settled: slow-confirming coins should not block checkout."""
        return self.kind in (InvoiceStatusKind.SETTLED, InvoiceStatusKind.PROCESSING)

    @property
    def is_expired(self) -> bool:
        return self.kind is InvoiceStatusKind.EXPIRED

    @property
    def is_terminal(self) -> bool:
        return self.is_settled or self.is_expired

    def __str__(self) -> str:
        return self.raw


# ═══════════════════════════════════════════════════════════════════════════════
# Crypto Preference → Payment Methods
# ═══════════════════════════════════════════════════════════════════════════════


class CryptoPreference(StrEnum):
    BITCOIN = "bitcoin"
    MONERO = "monero"


BITCOIN_METHODS = ("BTC", "BTC-LightningNetwork")
MONERO_METHODS = ("XMR",)


def payment_methods_for(preference: CryptoPreference | str | None) -> tuple[str, ...]:
    match preference:
        case CryptoPreference.BITCOIN:
            return BITCOIN_METHODS
        case CryptoPreference.MONERO:
            return MONERO_METHODS
        case _:
            return BITCOIN_METHODS + MONERO_METHODS


# ═══════════════════════════════════════════════════════════════════════════════
# Invoice Records
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CreatedInvoice:
    invoice_id: InvoiceId
    checkout_link: str
    status: InvoiceStatus
    amount: str
    currency: str


@dataclass(frozen=True, slots=True)
class Invoice:
    id: InvoiceId
    status: InvoiceStatus
    amount: str
    currency: str
    created_time: int | None = None
    expiration_time: int | None = None
    checkout_link: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


QR_SERVICE_URL = "https://api.qrserver.com/v1/create-qr-code/?size=256x256&data="


@dataclass(frozen=True, slots=True)
class PaymentMethodDetails:
    payment_method: str
    crypto_code: str
    destination: str
    payment_link: str
    rate: str = "0"
    amount: str = "0"
    due: str = "0"
    total_paid: str = "0"
    network_fee: str = "0"

    @property
    def qr_url(self) -> str:
        """QR image for the wallet URI, falling back to the bare address."""
        return QR_SERVICE_URL + quote(self.payment_link or self.destination, safe="")


# ═══════════════════════════════════════════════════════════════════════════════
# Gateway Protocol
# ═══════════════════════════════════════════════════════════════════════════════


class InvoiceGateway(Protocol):
    async def create_invoice(
        self,
        amount: float,
        currency: str,
        order_id: OrderId,
        buyer_email: str | None,
        payment_methods: Sequence[str],
    ) -> CreatedInvoice: ...

    async def get_invoice(self, invoice_id: InvoiceId) -> Invoice: ...

    async def get_payment_methods(self, invoice_id: InvoiceId) -> list[PaymentMethodDetails]: ...


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
)
