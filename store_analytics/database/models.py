"""
Database Models - Storefront Tables

Read model of the storefront backend tables the analytics engine consumes:

- products: catalog rows per store
- orders: order headers per store
- order_items: line items with the unit price captured at sale time
- store_customers: first-seen and lifetime value per customer, when tracked

Order status is stored as plain text so statuses unknown to the analytics
funnel survive the round trip. Line items do not reference products by
foreign key because deleted products leave their historical line items behind.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
import uuid

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


def _uuid() -> str:
    return str(uuid.uuid4())


class StoreProduct(Base):
    """
    Product Catalog Table

    One row per product listed by a store.
    """
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    store_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(100))
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    stock_quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_visible: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_products_store_category", "store_id", "category"),
    )


class StoreOrder(Base):
    """
    Orders Table

    Order header with the charged total and its line items.
    """
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    store_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    customer_id: Mapped[Optional[str]] = mapped_column(String(36))
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    items: Mapped[List["StoreOrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="StoreOrderItem.id",
    )

    __table_args__ = (
        Index("ix_orders_store_created", "store_id", "created_at"),
    )


class StoreOrderItem(Base):
    """
    Order Line Items Table

    Price is the unit price at time of sale, not the current catalog price.
    """
    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    order: Mapped["StoreOrder"] = relationship(back_populates="items")


class StoreCustomer(Base):
    """
    Customer History Table

    Populated by the customer service when it is deployed; empty otherwise.
    """
    __tablename__ = "store_customers"

    store_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    customer_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    first_seen: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    lifetime_value: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0, nullable=False)
