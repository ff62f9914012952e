"""
Coupon store — coupon records and usage rows.
"""

from __future__ import annotations

import uuid
from typing import Any, cast

from sqlalchemy import delete, func, select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront._types import Clock, OrderId, utcnow
from storefront.coupons._types import Coupon, NewCoupon
from storefront.db import CouponTable, CouponUsageTable, session_scope


class CouponStore:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock

    async def add(self, new: NewCoupon) -> Coupon:
        row = CouponTable(
            id=str(uuid.uuid4()),
            code=new.code.strip().upper(),
            discount_type=new.discount_type,
            discount_value=new.discount_value,
            minimum_order_amount=new.minimum_order_amount,
            max_uses=new.max_uses,
            current_uses=0,
            one_per_customer=new.one_per_customer,
            valid_from=new.valid_from,
            valid_until=new.valid_until,
            applies_to=new.applies_to,
            product_ids=list(new.product_ids),
            active=new.active,
            created_at=self._clock(),
        )
        async with session_scope(self._session_factory, "add coupon") as session:
            session.add(row)
            await session.commit()
        return _to_coupon(row)

    async def get(self, coupon_id: str) -> Coupon | None:
        async with session_scope(self._session_factory, "get coupon") as session:
            row = await session.get(CouponTable, coupon_id)
            return _to_coupon(row) if row else None

    async def get_by_code(self, code: str) -> Coupon | None:
        stmt = select(CouponTable).where(CouponTable.code == code.strip().upper())
        async with session_scope(self._session_factory, "get coupon by code") as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
            return _to_coupon(row) if row else None

    async def list(self) -> list[Coupon]:
        stmt = select(CouponTable).order_by(CouponTable.created_at.desc())
        async with session_scope(self._session_factory, "list coupons") as session:
            return [_to_coupon(r) for r in (await session.execute(stmt)).scalars().all()]

    async def set_active(self, coupon_id: str, active: bool) -> bool:
        stmt = update(CouponTable).where(CouponTable.id == coupon_id).values(active=active)
        async with session_scope(self._session_factory, "toggle coupon") as session:
            cursor = cast(CursorResult[Any], await session.execute(stmt))
            await session.commit()
            return cursor.rowcount > 0

    async def delete(self, coupon_id: str) -> bool:
        async with session_scope(self._session_factory, "delete coupon") as session:
            await session.execute(
                delete(CouponUsageTable).where(CouponUsageTable.coupon_id == coupon_id)
            )
            cursor = cast(
                CursorResult[Any],
                await session.execute(delete(CouponTable).where(CouponTable.id == coupon_id)),
            )
            await session.commit()
            return cursor.rowcount > 0

    async def has_usage(self, coupon_id: str, email: str) -> bool:
        stmt = (
            select(func.count())
            .select_from(CouponUsageTable)
            .where(
                CouponUsageTable.coupon_id == coupon_id,
                func.lower(CouponUsageTable.customer_email) == email.strip().lower(),
            )
        )
        async with session_scope(self._session_factory, "check coupon usage") as session:
            return (await session.execute(stmt)).scalar_one() > 0

    async def record_usage(self, coupon_id: str, email: str, order_id: OrderId) -> bool:
        """
        Increment current_uses and append a usage row in one transaction.

        Returns False when the coupon does not exist.
        """
        increment = (
            update(CouponTable)
            .where(CouponTable.id == coupon_id)
            .values(current_uses=CouponTable.current_uses + 1)
        )
        async with session_scope(self._session_factory, "record coupon usage") as session:
            cursor = cast(CursorResult[Any], await session.execute(increment))
            if cursor.rowcount == 0:
                await session.rollback()
                return False

            session.add(CouponUsageTable(
                coupon_id=coupon_id,
                customer_email=email.strip(),
                order_id=order_id,
                used_at=self._clock(),
            ))
            await session.commit()
            return True


def _to_coupon(row: CouponTable) -> Coupon:
    return Coupon(
        id=row.id,
        code=row.code,
        discount_type=row.discount_type,
        discount_value=float(row.discount_value),
        valid_from=row.valid_from,
        active=row.active,
        minimum_order_amount=(
            float(row.minimum_order_amount) if row.minimum_order_amount is not None else None
        ),
        max_uses=row.max_uses,
        current_uses=row.current_uses,
        one_per_customer=row.one_per_customer,
        valid_until=row.valid_until,
        applies_to=row.applies_to,
        product_ids=frozenset(row.product_ids or ()),
    )


__all__ = ("CouponStore",)
