"""
Product store — reads price/stock, writes stock.
"""

from __future__ import annotations

import uuid
from typing import Any, cast

from sqlalchemy import case, select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront._types import Clock, ProductId, utcnow
from storefront.catalog._types import NewProduct, Product
from storefront.db import ProductTable, session_scope


class ProductStore:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock

    async def add(self, new: NewProduct) -> Product:
        if new.stock < 0:
            raise ValueError("stock must be >= 0")

        row = ProductTable(
            id=str(uuid.uuid4()),
            name=new.name,
            price=new.price,
            discount=new.discount,
            stock=new.stock,
            hidden=new.hidden,
            modifier_groups=list(new.modifier_groups),
            created_at=self._clock(),
        )
        async with session_scope(self._session_factory, "add product") as session:
            session.add(row)
            await session.commit()
        return _to_product(row)

    async def get(self, product_id: ProductId) -> Product | None:
        async with session_scope(self._session_factory, "get product") as session:
            row = await session.get(ProductTable, product_id)
            return _to_product(row) if row else None

    async def list(self, include_hidden: bool = False) -> list[Product]:
        stmt = select(ProductTable).order_by(ProductTable.created_at)
        if not include_hidden:
            stmt = stmt.where(ProductTable.hidden.is_(False))

        async with session_scope(self._session_factory, "list products") as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [_to_product(r) for r in rows]

    async def get_stock(self, product_id: ProductId) -> int | None:
        async with session_scope(self._session_factory, "get stock") as session:
            stmt = select(ProductTable.stock).where(ProductTable.id == product_id)
            return (await session.execute(stmt)).scalar_one_or_none()

    async def set_stock(self, product_id: ProductId, stock: int) -> bool:
        if stock < 0:
            raise ValueError("stock must be >= 0")
        return await self._update(product_id, "set stock", stock=stock)

    async def set_hidden(self, product_id: ProductId, hidden: bool) -> bool:
        return await self._update(product_id, "toggle visibility", hidden=hidden)

    async def decrement_stock(self, product_id: ProductId, quantity: int) -> bool:
        """
        Atomically subtract `quantity`, clamping at zero.

        One UPDATE statement, no read-modify-write window.
        Returns False when the product row does not exist.
        """
        stmt = (
            update(ProductTable)
            .where(ProductTable.id == product_id)
            .values(
                stock=case(
                    (ProductTable.stock > quantity, ProductTable.stock - quantity),
                    else_=0,
                )
            )
        )
        async with session_scope(self._session_factory, "decrement stock") as session:
            cursor = cast(CursorResult[Any], await session.execute(stmt))
            await session.commit()
            return cursor.rowcount > 0

    async def _update(self, product_id: ProductId, operation: str, **values: Any) -> bool:
        stmt = update(ProductTable).where(ProductTable.id == product_id).values(**values)
        async with session_scope(self._session_factory, operation) as session:
            cursor = cast(CursorResult[Any], await session.execute(stmt))
            await session.commit()
            return cursor.rowcount > 0


def _to_product(row: ProductTable) -> Product:
    return Product(
        id=row.id,
        name=row.name,
        price=float(row.price),
        discount=float(row.discount) if row.discount is not None else None,
        stock=row.stock,
        hidden=row.hidden,
        modifier_groups=list(row.modifier_groups or []),
    )


__all__ = ("ProductStore",)
