from fastapi import APIRouter

from orderdesk.api.v1.endpoints import (
    orders,
    deliveries,
    inventory,
    settings,
)


# Create main API router
api_router = APIRouter(prefix="/api/v1")

# ==================== Orders ====================
api_router.include_router(
    orders.router,
    prefix="/orders",
    tags=["Orders"]
)

# ==================== Deliveries ====================
api_router.include_router(
    deliveries.router,
    prefix="/deliveries",
    tags=["Deliveries"]
)

# ==================== Inventory ====================
api_router.include_router(
    inventory.router,
    prefix="/inventory",
    tags=["Inventory"]
)

# ==================== Store Settings ====================
api_router.include_router(
    settings.router,
    prefix="/settings",
    tags=["Settings"]
)
