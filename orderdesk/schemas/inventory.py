"""Inventory schemas."""
import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from orderdesk.schemas.base import BaseResponseSchema, BaseCreateSchema


class LocationCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=200)
    address: Optional[str] = None


class LocationResponse(BaseResponseSchema):
    id: uuid.UUID
    name: str
    address: Optional[str] = None
    is_active: bool


class LocationStock(BaseModel):
    location_id: uuid.UUID
    location_name: str
    is_active: bool = True
    quantity: int
    low_stock_threshold: int
    is_low_stock: bool = False


class StockResponse(BaseModel):
    """Total stock for a product plus its per-location breakdown."""
    product_id: uuid.UUID
    total: int
    locations: List[LocationStock] = []


class StockUpdate(BaseModel):
    """Set the on-hand quantity at one location."""
    quantity: int = Field(..., ge=0)
    low_stock_threshold: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None


class ProductInventoryResponse(BaseResponseSchema):
    product_id: uuid.UUID
    location_id: uuid.UUID
    quantity: int
    low_stock_threshold: int
    updated_at: Optional[datetime] = None


class LowStockItem(BaseModel):
    product_id: uuid.UUID
    location_id: uuid.UUID
    location_name: str
    quantity: int
    low_stock_threshold: int


class StockAdjustmentRequest(BaseModel):
    """
    Idempotent stock movement requested by a remote order service.

    quantity is always positive; type decides the direction.
    """
    product_id: uuid.UUID
    location_id: uuid.UUID
    quantity: int = Field(..., ge=1)
    type: Literal["SALE", "RELEASE"]
    reference_id: str = Field(..., min_length=1, max_length=100)


class StockAdjustmentResponse(BaseModel):
    applied: bool
    product_id: uuid.UUID
    location_id: uuid.UUID
    reference_id: str
