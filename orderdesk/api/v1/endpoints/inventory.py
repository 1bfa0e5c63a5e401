from typing import List
import uuid

from fastapi import APIRouter, status, Query

from orderdesk.api.deps import DB, Actor
from orderdesk.api.errors import http_error
from orderdesk.core.exceptions import OrderDeskError
from orderdesk.models.inventory import InventoryTransactionType
from orderdesk.schemas.inventory import (
    LocationCreate,
    LocationResponse,
    StockResponse,
    StockUpdate,
    ProductInventoryResponse,
    LowStockItem,
    StockAdjustmentRequest,
    StockAdjustmentResponse,
)
from orderdesk.services.inventory_service import InventoryService


router = APIRouter(tags=["Inventory"])


# ==================== LOCATIONS ====================

@router.get(
    "/locations",
    response_model=List[LocationResponse],
)
async def list_locations(
    db: DB,
    active_only: bool = Query(False),
):
    locations = await InventoryService(db).list_locations(active_only=active_only)
    return [LocationResponse.model_validate(loc) for loc in locations]


@router.post(
    "/locations",
    response_model=LocationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_location(
    data: LocationCreate,
    db: DB,
):
    location = await InventoryService(db).create_location(data.name, data.address)
    return LocationResponse.model_validate(location)


# ==================== STOCK ====================

@router.get(
    "/low-stock",
    response_model=List[LowStockItem],
)
async def list_low_stock(db: DB):
    """Stock rows at or below their low stock threshold."""
    rows = await InventoryService(db).list_low_stock()
    return [LowStockItem(**row) for row in rows]


@router.post(
    "/adjustments",
    response_model=StockAdjustmentResponse,
)
async def apply_stock_adjustment(
    data: StockAdjustmentRequest,
    db: DB,
    actor: Actor,
):
    """
    Idempotent stock movement for remote order services.

    A repeated reference_id returns applied=false without moving stock.
    """
    service = InventoryService(db)
    try:
        if data.type == InventoryTransactionType.SALE.value:
            applied = await service.decrement_stock(
                data.product_id, data.location_id, data.quantity, data.reference_id, created_by=actor
            )
        else:
            applied = await service.increment_stock(
                data.product_id, data.location_id, data.quantity, data.reference_id, created_by=actor
            )
    except OrderDeskError as e:
        raise http_error(e)

    return StockAdjustmentResponse(
        applied=applied,
        product_id=data.product_id,
        location_id=data.location_id,
        reference_id=data.reference_id,
    )


@router.get(
    "/{product_id}",
    response_model=StockResponse,
)
async def get_product_stock(
    product_id: uuid.UUID,
    db: DB,
):
    """Total stock and per-location breakdown for a product."""
    stock = await InventoryService(db).get_stock(product_id)
    return StockResponse(**stock)


@router.put(
    "/{product_id}/locations/{location_id}",
    response_model=ProductInventoryResponse,
)
async def set_product_stock(
    product_id: uuid.UUID,
    location_id: uuid.UUID,
    data: StockUpdate,
    db: DB,
    actor: Actor,
):
    """Set the on-hand quantity of a product at one location."""
    try:
        inventory = await InventoryService(db).set_stock(
            product_id,
            location_id,
            data.quantity,
            low_stock_threshold=data.low_stock_threshold,
            created_by=actor,
            notes=data.notes,
        )
    except OrderDeskError as e:
        raise http_error(e)
    return ProductInventoryResponse.model_validate(inventory)
