"""
Shipping service — quote a destination against the stored config.
"""

from __future__ import annotations

import logging

from storefront.errors import StoreFailure
from storefront.shipping._resolve import resolve_cost
from storefront.shipping._store import ShippingConfigStore

logger = logging.getLogger(__name__)


class ShippingService:
    def __init__(self, store: ShippingConfigStore) -> None:
        self._store = store

    @property
    def store(self) -> ShippingConfigStore:
        return self._store

    async def quote(self, country: str) -> float:
        config = await self._store.get()
        if config is None:
            logger.error("Shipping configuration missing, cannot quote %s", country)
            raise StoreFailure("Failed to fetch shipping configuration")
        return resolve_cost(config, country)


__all__ = ("ShippingService",)
