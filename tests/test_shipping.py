"""Tests for shipping cost resolution."""

import pytest

from storefront import shipping as SH
from storefront.errors import StoreFailure

BASIC = SH.ShippingConfig(
    mode=SH.ShippingMode.BASIC,
    domestic_rate=5.0,
    international_rate=20.0,
    domestic_countries=("US", "CA"),
)
ADVANCED = SH.ShippingConfig(
    mode=SH.ShippingMode.ADVANCED,
    country_rates={"GB": 12.0, "DE": 15.0},
    default_rate=30.0,
)


class TestResolveCost:
    @pytest.mark.parametrize("country", ["US", "ca", " us "])
    def test_basic_domestic(self, country):
        assert SH.resolve_cost(BASIC, country) == 5.0

    @pytest.mark.parametrize("country", ["GB", "JP", "ZZ"])
    def test_basic_international(self, country):
        assert SH.resolve_cost(BASIC, country) == 20.0

    def test_advanced_table_hit(self):
        assert SH.resolve_cost(ADVANCED, "gb") == 12.0
        assert SH.resolve_cost(ADVANCED, "DE") == 15.0

    def test_advanced_default(self):
        assert SH.resolve_cost(ADVANCED, "FR") == 30.0

    def test_unknown_mode_costs_nothing(self):
        assert SH.resolve_cost(SH.ShippingConfig(mode="flat"), "US") == 0.0


class TestShippingService:
    async def test_missing_config(self, session_factory):
        service = SH.ShippingService(SH.ShippingConfigStore(session_factory))

        with pytest.raises(StoreFailure) as exc_info:
            await service.quote("US")

        assert exc_info.value.message == "Failed to fetch shipping configuration"

    async def test_upsert_keeps_a_single_config(self, session_factory):
        store = SH.ShippingConfigStore(session_factory)
        service = SH.ShippingService(store)

        await store.upsert(BASIC)
        assert await service.quote("CA") == 5.0

        saved = await store.upsert(ADVANCED)
        assert saved.mode == SH.ShippingMode.ADVANCED
        assert await service.quote("GB") == 12.0
        assert await service.quote("US") == 30.0
