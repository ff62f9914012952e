"""
Checkout — order placement and settlement.

    from storefront import checkout as CO

    result = await service.place_order(CO.CheckoutRequest(
        items=(LineItem("p1", "Mug", 20.0, 3, (mod_plus_5,)),),
        total_amount=75.0,
        shipping_address=address,
    ))
    # ... client polls the invoice ...
    await service.settle(result.order.id)
"""

from __future__ import annotations

from storefront.checkout._types import CheckoutRequest, CheckoutResult, SettlementResult
from storefront.checkout._totals import compute_subtotal, expected_total, validate_shape
from storefront.checkout._service import CheckoutService

__all__ = (
    "CheckoutRequest",
    "CheckoutResult",
    "SettlementResult",
    "compute_subtotal",
    "expected_total",
    "validate_shape",
    "CheckoutService",
)
