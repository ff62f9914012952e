"""
Shipping types.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field


class ShippingMode:
    """Values of shipping_config.mode."""

    BASIC = "basic"
    ADVANCED = "advanced"


@dataclass(frozen=True, slots=True)
class ShippingConfig:
    """
    The global shipping configuration.

    basic:    domestic_rate for countries in domestic_countries, else international_rate
    advanced: country_rates[country], else default_rate
    """

    mode: str = ShippingMode.BASIC
    domestic_rate: float = 0.0
    international_rate: float = 0.0
    domestic_countries: tuple[str, ...] = ("US",)
    country_rates: Mapping[str, float] = field(default_factory=dict)
    default_rate: float = 0.0


__all__ = ("ShippingMode", "ShippingConfig")
