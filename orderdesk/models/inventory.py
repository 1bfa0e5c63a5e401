"""Inventory models for stock management."""
from enum import Enum
from datetime import datetime, timezone
from sqlalchemy import Column, String, Text, Boolean, ForeignKey, Integer, DateTime
from sqlalchemy import UniqueConstraint, CheckConstraint, Index
import uuid

from orderdesk.database import Base
from orderdesk.db_types import UUIDType


class InventoryTransactionType(str, Enum):
    """Inventory ledger entry type."""
    SALE = "SALE"  # Stock taken by an order confirmation
    RELEASE = "RELEASE"  # Stock returned by a cancellation
    ADJUSTMENT = "ADJUSTMENT"  # Manual stock update


class WarehouseLocation(Base):
    """Physical location stock is held at."""

    __tablename__ = "warehouse_locations"

    id = Column(UUIDType, primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False, unique=True)
    address = Column(Text)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<WarehouseLocation(name='{self.name}')>"


class ProductInventory(Base):
    """On-hand quantity of one product at one location."""

    __tablename__ = "product_inventory"
    __table_args__ = (
        UniqueConstraint("product_id", "location_id", name="uq_product_inventory_location"),
        CheckConstraint("quantity >= 0", name="chk_product_inventory_quantity"),
    )

    id = Column(UUIDType, primary_key=True, default=uuid.uuid4)
    product_id = Column(UUIDType, nullable=False, index=True)
    location_id = Column(UUIDType, ForeignKey("warehouse_locations.id"), nullable=False, index=True)

    quantity = Column(Integer, default=0, nullable=False)
    low_stock_threshold = Column(Integer, default=5, nullable=False)

    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.low_stock_threshold

    def __repr__(self):
        return f"<ProductInventory(product={self.product_id}, qty={self.quantity})>"


class InventoryTransaction(Base):
    """
    Signed stock movement ledger.

    reference_id carries the idempotency key of the effect that produced the
    movement (e.g. "<order_id>:<item_id>:sale:<attempt>"); the unique constraint makes a replayed
    movement collide instead of moving stock twice.
    """

    __tablename__ = "inventory_transactions"
    __table_args__ = (
        UniqueConstraint(
            "reference_id", "product_id", "location_id", "type",
            name="uq_inventory_transaction_reference",
        ),
        Index("ix_inventory_transactions_product_created", "product_id", "created_at"),
    )

    id = Column(UUIDType, primary_key=True, default=uuid.uuid4)
    product_id = Column(UUIDType, nullable=False)
    location_id = Column(UUIDType, ForeignKey("warehouse_locations.id"), nullable=False)

    quantity = Column(Integer, nullable=False)  # Negative for outbound
    type = Column(String(20), nullable=False, comment="SALE, RELEASE, ADJUSTMENT")
    reference_id = Column(String(100), nullable=True)
    notes = Column(Text)

    created_by = Column(String(100))
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<InventoryTransaction(type='{self.type}', qty={self.quantity})>"
