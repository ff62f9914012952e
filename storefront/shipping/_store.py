"""
Shipping config store — a single row, id 1.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront._types import Clock, utcnow
from storefront.db import ShippingConfigTable, session_scope
from storefront.shipping._types import ShippingConfig

SINGLETON_ID = 1


class ShippingConfigStore:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock

    async def get(self) -> ShippingConfig | None:
        async with session_scope(self._session_factory, "get shipping config") as session:
            row = await session.get(ShippingConfigTable, SINGLETON_ID)
            return _to_config(row) if row else None

    async def upsert(self, config: ShippingConfig) -> ShippingConfig:
        async with session_scope(self._session_factory, "save shipping config") as session:
            row = await session.get(ShippingConfigTable, SINGLETON_ID)
            if row is None:
                row = ShippingConfigTable(id=SINGLETON_ID)
                session.add(row)

            row.mode = config.mode
            row.domestic_rate = config.domestic_rate
            row.international_rate = config.international_rate
            row.domestic_countries = [c.upper() for c in config.domestic_countries]
            row.country_rates = {k.upper(): v for k, v in config.country_rates.items()}
            row.default_rate = config.default_rate
            row.updated_at = self._clock()

            await session.commit()
            return _to_config(row)


def _to_config(row: ShippingConfigTable) -> ShippingConfig:
    return ShippingConfig(
        mode=row.mode,
        domestic_rate=float(row.domestic_rate or 0),
        international_rate=float(row.international_rate or 0),
        domestic_countries=tuple(row.domestic_countries or ("US",)),
        country_rates={k: float(v) for k, v in (row.country_rates or {}).items()},
        default_rate=float(row.default_rate or 0),
    )


__all__ = ("ShippingConfigStore",)
