import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class DeliveryResponse(BaseModel):
    """Row of the active deliveries board."""
    order_id: uuid.UUID
    order_number: str
    customer_name: str
    phone: Optional[str] = None
    address: str = ""
    items_summary: str = ""
    status: str
    delivery_status: str
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    estimated_delivery: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class DeliveryListResponse(BaseModel):
    items: List[DeliveryResponse]
    total: int


class DeliveryStatsResponse(BaseModel):
    """Delivery counters over the last 30 days."""
    awaiting_dispatch: int = 0
    out_for_delivery: int = 0
    failed_delivery: int = 0
    delivered_today: int = 0
