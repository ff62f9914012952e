"""
Cart — the browser-side basket, kept in memory.

Lines with the same product and the same modifier selection merge;
a different selection is a separate line.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from storefront.catalog import Product, discounted_price
from storefront.orders import LineItem, SelectedModifier


def _modifier_key(modifiers: Iterable[SelectedModifier]) -> str:
    return "|".join(sorted(f"{m.group_id}:{m.option_id}" for m in modifiers))


@dataclass(frozen=True, slots=True)
class CartLine:
    product_id: str
    name: str
    unit_price: float
    quantity: int
    discount: float | None = None
    modifiers: tuple[SelectedModifier, ...] = ()

    @property
    def line_id(self) -> str:
        return f"{self.product_id}_{_modifier_key(self.modifiers)}"

    @property
    def price(self) -> float:
        """Unit price after the product discount, before modifiers."""
        return discounted_price(self.unit_price, self.discount)

    @property
    def total(self) -> float:
        return (self.price + sum(m.price_adjustment for m in self.modifiers)) * self.quantity


@dataclass(slots=True)
class Cart:
    lines: list[CartLine] = field(default_factory=list)

    def add(
        self,
        product: Product,
        modifiers: Iterable[SelectedModifier] = (),
        quantity: int = 1,
    ) -> CartLine:
        if quantity <= 0:
            raise ValueError("The quantity must be a positive number.")

        candidate = CartLine(
            product_id=product.id,
            name=product.name,
            unit_price=product.price,
            quantity=quantity,
            discount=product.discount,
            modifiers=tuple(modifiers),
        )
        for i, line in enumerate(self.lines):
            if line.line_id == candidate.line_id:
                merged = replace(line, quantity=line.quantity + quantity)
                self.lines[i] = merged
                return merged

        self.lines.append(candidate)
        return candidate

    def remove(self, line_id: str) -> None:
        self.lines = [line for line in self.lines if line.line_id != line_id]

    def update_quantity(self, line_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove(line_id)
            return
        self.lines = [
            replace(line, quantity=quantity) if line.line_id == line_id else line
            for line in self.lines
        ]

    def subtotal(self) -> float:
        return sum(line.total for line in self.lines)

    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def product_ids(self) -> list[str]:
        return list(dict.fromkeys(line.product_id for line in self.lines))

    def to_line_items(self) -> tuple[LineItem, ...]:
        return tuple(
            LineItem(
                product_id=line.product_id,
                name=line.name,
                price=line.price,
                quantity=line.quantity,
                modifiers=line.modifiers,
            )
            for line in self.lines
        )

    def clear(self) -> None:
        self.lines.clear()

    @property
    def is_empty(self) -> bool:
        return not self.lines


__all__ = ("CartLine", "Cart")
