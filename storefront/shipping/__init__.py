"""
Shipping — cost resolution from a single global config.

    from storefront import shipping as SH

    config = SH.ShippingConfig(mode=SH.ShippingMode.BASIC, domestic_rate=5, international_rate=15)
    SH.resolve_cost(config, "US")    # 5
    SH.resolve_cost(config, "DE")    # 15
"""

from __future__ import annotations

from storefront.shipping._types import ShippingMode, ShippingConfig
from storefront.shipping._resolve import resolve_cost
from storefront.shipping._store import ShippingConfigStore
from storefront.shipping._service import ShippingService

__all__ = (
    "ShippingMode",
    "ShippingConfig",
    "resolve_cost",
    "ShippingConfigStore",
    "ShippingService",
)
