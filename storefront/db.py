"""
Database layer — SQLAlchemy models for the storefront.

Money columns are Numeric(10, 2) read back as float. Line items, modifiers,
country lists and rate tables live in JSON columns. Datetimes are naive UTC.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from storefront.errors import StoreFailure

logger = logging.getLogger(__name__)


def _money() -> Any:
    return Numeric(10, 2, asdecimal=False)


# ═══════════════════════════════════════════════════════════════════════════════
# Base
# ═══════════════════════════════════════════════════════════════════════════════


class Base(DeclarativeBase):
    pass


# ═══════════════════════════════════════════════════════════════════════════════
# Products
# ═══════════════════════════════════════════════════════════════════════════════


class ProductTable(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    price: Mapped[float] = mapped_column(_money(), nullable=False)
    discount: Mapped[float | None] = mapped_column(_money(), nullable=True)
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    modifier_groups: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


class OrderTable(Base):
    """
    Orders table.

    Note: status is free text, not an enum column. Any label is storable;
    the checkout flow only recognizes pending/paid/shipped/delivered/cancelled.
    """

    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    order_number: Mapped[str] = mapped_column(String(40), nullable=False, unique=True)
    status: Mapped[str] = mapped_column(String(40), nullable=False, index=True)

    total_amount: Mapped[float] = mapped_column(_money(), nullable=False)
    items: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    shipping_address: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    shipping_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    shipping_cost: Mapped[float] = mapped_column(_money(), nullable=False, default=0)

    coupon_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    coupon_discount: Mapped[float] = mapped_column(_money(), nullable=False, default=0)

    btcpay_invoice_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    tracking_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    shipping_tracking_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    shipped_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    shipping_notification_scheduled_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    shipping_notification_sent_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    paid_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


# ═══════════════════════════════════════════════════════════════════════════════
# Coupons
# ═══════════════════════════════════════════════════════════════════════════════


class CouponTable(Base):
    __tablename__ = "coupons"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    discount_type: Mapped[str] = mapped_column(String(20), nullable=False)
    discount_value: Mapped[float] = mapped_column(_money(), nullable=False)
    minimum_order_amount: Mapped[float | None] = mapped_column(_money(), nullable=True)
    max_uses: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_uses: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    one_per_customer: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    valid_from: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    valid_until: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    applies_to: Mapped[str] = mapped_column(String(20), nullable=False, default="all")
    product_ids: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class CouponUsageTable(Base):
    __tablename__ = "coupon_usage"
    __table_args__ = (UniqueConstraint("coupon_id", "order_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    coupon_id: Mapped[str] = mapped_column(ForeignKey("coupons.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    order_id: Mapped[str] = mapped_column(String(36), nullable=False)
    used_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


# ═══════════════════════════════════════════════════════════════════════════════
# Shipping Config — singleton row
# ═══════════════════════════════════════════════════════════════════════════════


class ShippingConfigTable(Base):
    __tablename__ = "shipping_config"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    mode: Mapped[str] = mapped_column(String(20), nullable=False, default="basic")
    domestic_rate: Mapped[float] = mapped_column(_money(), nullable=False, default=0)
    international_rate: Mapped[float] = mapped_column(_money(), nullable=False, default=0)
    domestic_countries: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    country_rates: Mapped[dict[str, float] | None] = mapped_column(JSON, nullable=True)
    default_rate: Mapped[float] = mapped_column(_money(), nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


# ═══════════════════════════════════════════════════════════════════════════════
# Database Setup
# ═══════════════════════════════════════════════════════════════════════════════


async def create_database(
    url: str = "sqlite+aiosqlite:///:memory:",
) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """Create tables and return (session_factory, engine)."""
    if ":memory:" in url:
        # one shared connection, otherwise every session sees an empty database
        engine = create_async_engine(url, echo=False, poolclass=StaticPool)
    else:
        engine = create_async_engine(url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    return async_sessionmaker(engine, expire_on_commit=False), engine


@asynccontextmanager
async def session_scope(
    session_factory: async_sessionmaker[AsyncSession],
    operation: str,
) -> AsyncIterator[AsyncSession]:
    """
    Open a session; datastore errors surface as StoreFailure.

    The upstream error is logged with `operation` and never reaches the caller.
    """
    async with session_factory() as session:
        try:
            yield session
        except SQLAlchemyError as e:
            logger.error("Datastore failure during %s: %s", operation, e)
            await session.rollback()
            raise StoreFailure(cause=e) from e


__all__ = (
    "Base",
    "ProductTable",
    "OrderTable",
    "CouponTable",
    "CouponUsageTable",
    "ShippingConfigTable",
    "create_database",
    "session_scope",
)
