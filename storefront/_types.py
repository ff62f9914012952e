"""
Core types for storefront.

Money helpers, identity aliases and the clock.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

# ═══════════════════════════════════════════════════════════════════════════════
# Identity Aliases
# ═══════════════════════════════════════════════════════════════════════════════

type OrderId = str
"""Opaque order id (UUID string)."""

type ProductId = str
"""Opaque product id (UUID string)."""

type InvoiceId = str
"""Payment-processor invoice id."""

# ═══════════════════════════════════════════════════════════════════════════════
# Clock
# ═══════════════════════════════════════════════════════════════════════════════

type Clock = Callable[[], datetime]
"""Returns the current time as naive UTC."""


def utcnow() -> datetime:
    """Current time as naive UTC — the storage layer never sees tz-aware values."""
    return datetime.now(UTC).replace(tzinfo=None)


# ═══════════════════════════════════════════════════════════════════════════════
# Money
# ═══════════════════════════════════════════════════════════════════════════════

MONEY_EPSILON = 0.01
"""Absolute tolerance for currency comparisons (chained float multiplications drift)."""

_FLOAT_SLACK = 1e-9


def money_matches(a: float, b: float) -> bool:
    return abs(a - b) <= MONEY_EPSILON + _FLOAT_SLACK


def round_money(value: float) -> float:
    return round(value, 2)


def format_money(value: float) -> str:
    return f"${value:.2f}"


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "OrderId",
    "ProductId",
    "InvoiceId",
    "Clock",
    "utcnow",
    "MONEY_EPSILON",
    "money_matches",
    "round_money",
    "format_money",
)
