"""
Shipping cost resolver.
"""

from __future__ import annotations

from storefront.shipping._types import ShippingConfig, ShippingMode


def resolve_cost(config: ShippingConfig, country: str) -> float:
    """
    Map a destination country to a shipping cost.

    Never raises for unknown countries: the international/default rate
    applies. An unrecognized mode costs nothing.
    """
    country = country.strip().upper()

    match config.mode:
        case ShippingMode.BASIC:
            domestic = {c.upper() for c in config.domestic_countries}
            return config.domestic_rate if country in domestic else config.international_rate
        case ShippingMode.ADVANCED:
            rates = {code.upper(): rate for code, rate in config.country_rates.items()}
            return rates.get(country, config.default_rate)
        case _:
            return 0.0


__all__ = ("resolve_cost",)
