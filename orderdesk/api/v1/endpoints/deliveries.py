from fastapi import APIRouter, Query

from orderdesk.api.deps import DB
from orderdesk.schemas.delivery import (
    DeliveryResponse,
    DeliveryListResponse,
    DeliveryStatsResponse,
)
from orderdesk.services.delivery_service import DeliveryService


router = APIRouter(tags=["Deliveries"])


@router.get(
    "",
    response_model=DeliveryListResponse,
)
async def list_active_deliveries(
    db: DB,
    limit: int = Query(100, ge=1, le=500),
):
    """Orders that are packed or on the way, newest first."""
    service = DeliveryService(db)
    deliveries = await service.get_active_deliveries(limit=limit)
    total = await service.count_active()
    return DeliveryListResponse(
        items=[DeliveryResponse(**d) for d in deliveries],
        total=total,
    )


@router.get(
    "/stats",
    response_model=DeliveryStatsResponse,
)
async def get_delivery_stats(db: DB):
    """Delivery counters for the last 30 days."""
    stats = await DeliveryService(db).get_delivery_stats()
    return DeliveryStatsResponse(**stats)
