"""
Inventory Service

Local implementation of the inventory collaborator: per-product,
per-location stock in product_inventory with every movement written to the
inventory_transactions ledger. It shares the caller's session, so stock
movements commit or roll back together with the order transition.
"""
import logging
import uuid
from typing import Dict, List, Optional

from sqlalchemy import select, update, and_
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.core.exceptions import EffectError, OrderDeskError
from orderdesk.models.inventory import (
    WarehouseLocation,
    ProductInventory,
    InventoryTransaction,
    InventoryTransactionType,
)

logger = logging.getLogger(__name__)


class InventoryError(EffectError):
    """Base inventory error."""
    error_code = "INVENTORY_ERROR"


class InsufficientStockError(InventoryError):
    """Not enough stock at any (or the requested) location."""
    error_code = "INSUFFICIENT_STOCK"


class InventoryUnavailableError(InventoryError):
    """The inventory backend timed out or could not be reached."""
    error_code = "INVENTORY_UNAVAILABLE"


class LocationNotFoundError(OrderDeskError):
    error_code = "LOCATION_NOT_FOUND"


def pick_location(stock: Dict, quantity: int) -> Optional[str]:
    """
    Choose the active location holding the most stock that still covers
    `quantity`. Returns the location id as a string, or None.
    """
    candidates = [
        loc for loc in stock.get("locations", [])
        if loc.get("is_active", True) and loc["quantity"] >= quantity
    ]
    if not candidates:
        return None
    best = max(candidates, key=lambda loc: loc["quantity"])
    return str(best["location_id"])


class InventoryService:
    """Stock lookups, movements and the stock update dialog's operations."""

    transactional = True

    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== STOCK LOOKUP ====================

    async def get_stock(self, product_id: uuid.UUID) -> Dict:
        """Total on-hand quantity plus the per-location breakdown."""
        result = await self.db.execute(
            select(ProductInventory, WarehouseLocation)
            .join(WarehouseLocation, ProductInventory.location_id == WarehouseLocation.id)
            .where(ProductInventory.product_id == product_id)
            .order_by(WarehouseLocation.name)
        )
        locations = []
        for inv, location in result.all():
            locations.append({
                "location_id": str(location.id),
                "location_name": location.name,
                "is_active": location.is_active,
                "quantity": inv.quantity,
                "low_stock_threshold": inv.low_stock_threshold,
                "is_low_stock": inv.is_low_stock,
            })

        return {
            "product_id": str(product_id),
            "total": sum(loc["quantity"] for loc in locations),
            "locations": locations,
        }

    async def choose_location(self, product_id: uuid.UUID, quantity: int) -> uuid.UUID:
        stock = await self.get_stock(product_id)
        location_id = pick_location(stock, quantity)
        if location_id is None:
            raise InsufficientStockError(
                f"Insufficient stock for product {product_id}: "
                f"requested {quantity}, available {stock['total']}",
                details={"product_id": str(product_id), "requested": quantity, "available": stock["total"]},
            )
        return uuid.UUID(location_id)

    # ==================== STOCK MOVEMENTS ====================

    async def _already_applied(
        self,
        product_id: uuid.UUID,
        location_id: uuid.UUID,
        txn_type: str,
        reference: str,
    ) -> bool:
        result = await self.db.execute(
            select(InventoryTransaction.id).where(
                and_(
                    InventoryTransaction.reference_id == reference,
                    InventoryTransaction.product_id == product_id,
                    InventoryTransaction.location_id == location_id,
                    InventoryTransaction.type == txn_type,
                )
            )
        )
        return result.first() is not None

    async def decrement_stock(
        self,
        product_id: uuid.UUID,
        location_id: uuid.UUID,
        quantity: int,
        reference: str,
        created_by: Optional[str] = None,
    ) -> bool:
        """
        Take `quantity` units out of one location.

        Returns False when a movement with the same reference was already
        recorded (replay), True when stock moved.

        Raises:
            InsufficientStockError: the location does not hold enough units
        """
        txn_type = InventoryTransactionType.SALE.value
        if await self._already_applied(product_id, location_id, txn_type, reference):
            logger.info(f"Stock decrement {reference} for product {product_id} already applied")
            return False

        # Conditional update keeps quantity >= 0 under concurrent sales
        result = await self.db.execute(
            update(ProductInventory)
            .where(
                and_(
                    ProductInventory.product_id == product_id,
                    ProductInventory.location_id == location_id,
                    ProductInventory.quantity >= quantity,
                )
            )
            .values(quantity=ProductInventory.quantity - quantity)
        )
        if result.rowcount == 0:
            raise InsufficientStockError(
                f"Insufficient stock for product {product_id} at location {location_id}",
                details={
                    "product_id": str(product_id),
                    "location_id": str(location_id),
                    "requested": quantity,
                },
            )

        self.db.add(InventoryTransaction(
            product_id=product_id,
            location_id=location_id,
            quantity=-quantity,
            type=txn_type,
            reference_id=reference,
            created_by=created_by,
        ))
        await self.db.flush()
        return True

    async def increment_stock(
        self,
        product_id: uuid.UUID,
        location_id: uuid.UUID,
        quantity: int,
        reference: str,
        created_by: Optional[str] = None,
    ) -> bool:
        """Put `quantity` units back at one location. Replays are no-ops."""
        txn_type = InventoryTransactionType.RELEASE.value
        if await self._already_applied(product_id, location_id, txn_type, reference):
            logger.info(f"Stock release {reference} for product {product_id} already applied")
            return False

        inventory = await self._get_row(product_id, location_id)
        if inventory is None:
            inventory = ProductInventory(
                product_id=product_id,
                location_id=location_id,
                quantity=0,
            )
            self.db.add(inventory)
            await self.db.flush()

        await self.db.execute(
            update(ProductInventory)
            .where(ProductInventory.id == inventory.id)
            .values(quantity=ProductInventory.quantity + quantity)
        )

        self.db.add(InventoryTransaction(
            product_id=product_id,
            location_id=location_id,
            quantity=quantity,
            type=txn_type,
            reference_id=reference,
            created_by=created_by,
        ))
        await self.db.flush()
        return True

    # ==================== STOCK MANAGEMENT ====================

    async def _get_row(self, product_id: uuid.UUID, location_id: uuid.UUID) -> Optional[ProductInventory]:
        result = await self.db.execute(
            select(ProductInventory).where(
                and_(
                    ProductInventory.product_id == product_id,
                    ProductInventory.location_id == location_id,
                )
            )
        )
        return result.scalar_one_or_none()

    async def set_stock(
        self,
        product_id: uuid.UUID,
        location_id: uuid.UUID,
        quantity: int,
        low_stock_threshold: Optional[int] = None,
        created_by: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> ProductInventory:
        """
        Set the on-hand quantity at a location (stock update dialog).

        The delta against the previous quantity is written to the ledger as
        an ADJUSTMENT.
        """
        location = await self.db.get(WarehouseLocation, location_id)
        if location is None:
            raise LocationNotFoundError(f"Location {location_id} not found")

        inventory = await self._get_row(product_id, location_id)
        previous = 0
        if inventory is None:
            inventory = ProductInventory(
                product_id=product_id,
                location_id=location_id,
                quantity=quantity,
            )
            if low_stock_threshold is not None:
                inventory.low_stock_threshold = low_stock_threshold
            self.db.add(inventory)
        else:
            previous = inventory.quantity
            inventory.quantity = quantity
            if low_stock_threshold is not None:
                inventory.low_stock_threshold = low_stock_threshold

        delta = quantity - previous
        if delta != 0:
            self.db.add(InventoryTransaction(
                product_id=product_id,
                location_id=location_id,
                quantity=delta,
                type=InventoryTransactionType.ADJUSTMENT.value,
                notes=notes,
                created_by=created_by,
            ))

        await self.db.flush()
        await self.db.refresh(inventory)
        logger.info(f"Stock for product {product_id} at {location.name}: {previous} -> {quantity}")
        return inventory

    async def list_low_stock(self) -> List[Dict]:
        """Rows at or below their low stock threshold."""
        result = await self.db.execute(
            select(ProductInventory, WarehouseLocation)
            .join(WarehouseLocation, ProductInventory.location_id == WarehouseLocation.id)
            .where(ProductInventory.quantity <= ProductInventory.low_stock_threshold)
            .order_by(ProductInventory.quantity, WarehouseLocation.name)
        )
        return [
            {
                "product_id": str(inv.product_id),
                "location_id": str(location.id),
                "location_name": location.name,
                "quantity": inv.quantity,
                "low_stock_threshold": inv.low_stock_threshold,
            }
            for inv, location in result.all()
        ]

    # ==================== LOCATIONS ====================

    async def list_locations(self, active_only: bool = False) -> List[WarehouseLocation]:
        query = select(WarehouseLocation).order_by(WarehouseLocation.name)
        if active_only:
            query = query.where(WarehouseLocation.is_active == True)  # noqa: E712
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create_location(self, name: str, address: Optional[str] = None) -> WarehouseLocation:
        location = WarehouseLocation(name=name, address=address, is_active=True)
        self.db.add(location)
        await self.db.flush()
        await self.db.refresh(location)
        logger.info(f"Created warehouse location {name}")
        return location
