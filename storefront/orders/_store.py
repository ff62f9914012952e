"""
Order store — create, read, partial update and the guarded transitions.

Guarded writes are single conditional UPDATEs; the rowcount tells whether
this call performed the transition:

    UPDATE orders SET status='paid', paid_at=:at WHERE id=:id AND status='pending'
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, cast

from sqlalchemy import select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront._types import Clock, OrderId, utcnow
from storefront.db import OrderTable, session_scope
from storefront.errors import InvalidTransition, OrderNotFound
from storefront.orders._types import (
    LineItem,
    NewOrder,
    Order,
    OrderStatus,
    ShippingAddress,
    can_transition,
    generate_order_number,
)

MUTABLE_FIELDS = frozenset({
    "status",
    "btcpay_invoice_id",
    "tracking_number",
    "shipping_tracking_url",
    "shipped_at",
    "shipping_notification_scheduled_at",
    "shipping_notification_sent_at",
    "paid_at",
})


class OrderStore:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock

    # ═══════════════════════════════════════════════════════════════════════════
    # Create / Read
    # ═══════════════════════════════════════════════════════════════════════════

    async def create(self, new: NewOrder) -> Order:
        """Insert with status `pending`."""
        now = self._clock()
        row = OrderTable(
            id=str(uuid.uuid4()),
            order_number=generate_order_number(now),
            status=OrderStatus.PENDING,
            total_amount=new.total_amount,
            items=[item.to_dict() for item in new.items],
            shipping_address=new.shipping_address.to_dict(),
            shipping_email=new.shipping_address.email,
            shipping_cost=new.shipping_cost,
            coupon_code=new.coupon_code,
            coupon_discount=new.coupon_discount,
            created_at=now,
            updated_at=now,
        )
        async with session_scope(self._session_factory, "create order") as session:
            session.add(row)
            await session.commit()
        return _to_order(row)

    async def get(self, order_id: OrderId) -> Order | None:
        async with session_scope(self._session_factory, "get order") as session:
            row = await session.get(OrderTable, order_id)
            return _to_order(row) if row else None

    async def require(self, order_id: OrderId) -> Order:
        order = await self.get(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    async def list(self, status: str | None = None) -> list[Order]:
        stmt = select(OrderTable).order_by(OrderTable.created_at.desc())
        if status is not None:
            stmt = stmt.where(OrderTable.status == status)
        async with session_scope(self._session_factory, "list orders") as session:
            return [_to_order(r) for r in (await session.execute(stmt)).scalars().all()]

    # ═══════════════════════════════════════════════════════════════════════════
    # Partial Update
    # ═══════════════════════════════════════════════════════════════════════════

    async def update(self, order_id: OrderId, **changes: Any) -> bool:
        """
        Update a subset of mutable fields. Returns False if the order is missing.

        Raises ValueError for fields outside MUTABLE_FIELDS.
        """
        unknown = set(changes) - MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update order fields: {', '.join(sorted(unknown))}")
        return await self._conditional(order_id, "update order", None, **changes)

    async def attach_invoice(self, order_id: OrderId, invoice_id: str) -> bool:
        return await self.update(order_id, btcpay_invoice_id=invoice_id)

    # ═══════════════════════════════════════════════════════════════════════════
    # Guarded Transitions
    # ═══════════════════════════════════════════════════════════════════════════

    async def mark_paid(self, order_id: OrderId, at: datetime | None = None) -> bool:
        """pending → paid. False when the order was not pending (or is missing)."""
        return await self._conditional(
            order_id,
            "mark order paid",
            OrderStatus.PENDING,
            status=OrderStatus.PAID,
            paid_at=at or self._clock(),
        )

    async def transition(self, order_id: OrderId, target: str) -> Order:
        """Admin status change, checked against TRANSITIONS."""
        order = await self.require(order_id)
        if not can_transition(order.status, target):
            raise InvalidTransition(order.status, target)

        changes: dict[str, Any] = {"status": target}
        if target == OrderStatus.PAID:
            changes["paid_at"] = self._clock()

        if not await self._conditional(order_id, "change order status", order.status, **changes):
            # status moved underneath us
            current = await self.require(order_id)
            raise InvalidTransition(current.status, target)

        return await self.require(order_id)

    async def mark_shipped(
        self,
        order_id: OrderId,
        tracking_number: str,
        tracking_url: str,
        at: datetime,
        notify_at: datetime,
    ) -> Order:
        """paid → shipped, recording tracking data and scheduling the notice."""
        order = await self.require(order_id)
        if order.status != OrderStatus.PAID:
            raise InvalidTransition(order.status, OrderStatus.SHIPPED)

        shipped = await self._conditional(
            order_id,
            "mark order shipped",
            OrderStatus.PAID,
            status=OrderStatus.SHIPPED,
            tracking_number=tracking_number,
            shipping_tracking_url=tracking_url,
            shipped_at=at,
            shipping_notification_scheduled_at=notify_at,
        )
        if not shipped:
            current = await self.require(order_id)
            raise InvalidTransition(current.status, OrderStatus.SHIPPED)

        return await self.require(order_id)

    # ═══════════════════════════════════════════════════════════════════════════
    # Shipping Notifications
    # ═══════════════════════════════════════════════════════════════════════════

    async def due_shipping_notifications(self, now: datetime) -> list[Order]:
        """Scheduled in the past, not yet sent, with an email and tracking data."""
        stmt = (
            select(OrderTable)
            .where(
                OrderTable.shipping_notification_scheduled_at.is_not(None),
                OrderTable.shipping_notification_scheduled_at <= now,
                OrderTable.shipping_notification_sent_at.is_(None),
                OrderTable.shipping_email.is_not(None),
                OrderTable.tracking_number.is_not(None),
                OrderTable.shipping_tracking_url.is_not(None),
            )
            .order_by(OrderTable.shipping_notification_scheduled_at)
        )
        async with session_scope(self._session_factory, "select due notifications") as session:
            return [_to_order(r) for r in (await session.execute(stmt)).scalars().all()]

    async def mark_notification_sent(self, order_id: OrderId, at: datetime) -> bool:
        stmt = (
            update(OrderTable)
            .where(
                OrderTable.id == order_id,
                OrderTable.shipping_notification_sent_at.is_(None),
            )
            .values(shipping_notification_sent_at=at, updated_at=self._clock())
        )
        async with session_scope(self._session_factory, "stamp notification sent") as session:
            cursor = cast(CursorResult[Any], await session.execute(stmt))
            await session.commit()
            return cursor.rowcount > 0

    # ═══════════════════════════════════════════════════════════════════════════
    # Internal
    # ═══════════════════════════════════════════════════════════════════════════

    async def _conditional(
        self,
        order_id: OrderId,
        operation: str,
        expected_status: str | None,
        **values: Any,
    ) -> bool:
        stmt = update(OrderTable).where(OrderTable.id == order_id)
        if expected_status is not None:
            stmt = stmt.where(OrderTable.status == expected_status)
        stmt = stmt.values(**values, updated_at=self._clock())

        async with session_scope(self._session_factory, operation) as session:
            cursor = cast(CursorResult[Any], await session.execute(stmt))
            await session.commit()
            return cursor.rowcount > 0


def _to_order(row: OrderTable) -> Order:
    return Order(
        id=row.id,
        order_number=row.order_number,
        status=row.status,
        total_amount=float(row.total_amount),
        items=tuple(LineItem.from_dict(i) for i in row.items or ()),
        shipping_address=ShippingAddress.from_dict(row.shipping_address or {}),
        created_at=row.created_at,
        shipping_cost=float(row.shipping_cost or 0),
        coupon_code=row.coupon_code,
        coupon_discount=float(row.coupon_discount or 0),
        btcpay_invoice_id=row.btcpay_invoice_id,
        tracking_number=row.tracking_number,
        tracking_url=row.shipping_tracking_url,
        shipped_at=row.shipped_at,
        shipping_notification_scheduled_at=row.shipping_notification_scheduled_at,
        shipping_notification_sent_at=row.shipping_notification_sent_at,
        paid_at=row.paid_at,
        updated_at=row.updated_at,
    )


__all__ = ("OrderStore", "MUTABLE_FIELDS")
