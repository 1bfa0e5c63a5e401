import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from orderdesk.models.order import PaymentStatus, TransitionAction
from orderdesk.schemas.base import BaseResponseSchema, BaseCreateSchema


# ==================== INPUT ====================

class AddressInput(BaseCreateSchema):
    """Shipping address: either a single full_address or its parts."""
    full_address: Optional[str] = None
    line1: Optional[str] = None
    line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


class OrderItemCreate(BaseCreateSchema):
    """Order item creation schema."""
    product_id: uuid.UUID
    product_name: str = Field(..., min_length=1, max_length=255)
    product_sku: Optional[str] = Field(None, max_length=50)
    quantity: int = Field(..., ge=1)
    unit_price: Decimal = Field(..., ge=0)
    location_id: Optional[uuid.UUID] = None  # Pin stock to a warehouse location


class OrderCreate(BaseCreateSchema):
    """Order creation schema."""
    customer_id: uuid.UUID
    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    shipping_address: Optional[AddressInput] = None
    payment_method: Optional[str] = Field(None, max_length=50)
    payment_status: PaymentStatus = PaymentStatus.PENDING
    shipping_cost: Decimal = Field(Decimal("0"), ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    notes: Optional[str] = None
    items: List[OrderItemCreate] = Field(..., min_length=1)


class TransitionRequest(BaseModel):
    """Request body for POST /orders/{id}/transition."""
    action: TransitionAction
    notes: Optional[str] = None
    tracking_number: Optional[str] = Field(None, max_length=100)
    carrier: Optional[str] = Field(None, max_length=100)
    estimated_delivery: Optional[datetime] = None
    expected_version: Optional[int] = Field(None, ge=1)


# ==================== OUTPUT ====================

class OrderItemResponse(BaseResponseSchema):
    """Order item response schema."""
    id: uuid.UUID
    product_id: uuid.UUID
    product_name: str
    product_sku: Optional[str] = None
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    location_id: Optional[uuid.UUID] = None


class OrderView(BaseResponseSchema):
    """Order with derived display fields."""
    id: uuid.UUID
    order_number: str
    customer_id: uuid.UUID
    customer_name: str
    customer_email: Optional[str] = None
    phone: Optional[str] = None
    shipping_address: Optional[dict] = None
    status: str
    delivery_status: Optional[str] = None
    payment_method: Optional[str] = None
    payment_status: str
    shipping_cost: Decimal
    total_amount: Decimal
    currency: str
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    estimated_delivery: Optional[datetime] = None
    notes: Optional[str] = None
    version: int
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemResponse] = []
    item_count: int = 0

    # Derived
    items_summary: str = ""
    address: str = ""
    next_expected_action: str = ""
    allowed_actions: List[str] = []


class OrderListResponse(BaseModel):
    """Paginated order list."""
    items: List[OrderView]
    total: int
    page: int
    size: int
    pages: int


class TransitionResponse(BaseModel):
    """Outcome of a committed transition."""
    order_id: uuid.UUID
    status: str
    delivery_status: Optional[str] = None
    version: int
    warnings: List[str] = []


class AllowedActionsResponse(BaseModel):
    order_id: uuid.UUID
    status: str
    delivery_status: Optional[str] = None
    allowed_actions: List[str]
    next_expected_action: str


class StatusHistoryResponse(BaseResponseSchema):
    """Status history entry."""
    id: int
    order_id: uuid.UUID
    action: Optional[str] = None
    from_status: Optional[str] = None
    status: str
    delivery_status: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
