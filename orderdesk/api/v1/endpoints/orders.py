from typing import Optional, List
import uuid
from math import ceil
from datetime import datetime

from fastapi import APIRouter, status, Query

from orderdesk.api.deps import DB, Actor
from orderdesk.api.errors import http_error
from orderdesk.core.exceptions import OrderDeskError
from orderdesk.models.order import OrderStatus, PaymentStatus, DeliveryStatus
from orderdesk.schemas.order import (
    OrderCreate,
    OrderView,
    OrderListResponse,
    TransitionRequest,
    TransitionResponse,
    AllowedActionsResponse,
    StatusHistoryResponse,
)
from orderdesk.services.order_lifecycle_service import OrderLifecycleService
from orderdesk.services.order_query_service import OrderQueryService, build_order_view
from orderdesk.services.order_state_machine import (
    get_allowed_actions,
    next_expected_action,
)
from orderdesk.services.status_history_service import StatusHistoryService


router = APIRouter(tags=["Orders"])


def _build_order_response(order) -> OrderView:
    """Build OrderView from Order model."""
    return OrderView.model_validate(build_order_view(order), from_attributes=True)


@router.get(
    "",
    response_model=OrderListResponse,
)
async def list_orders(
    db: DB,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status: Optional[OrderStatus] = Query(None),
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    customer_id: Optional[uuid.UUID] = Query(None),
    payment_status: Optional[PaymentStatus] = Query(None),
    delivery_status: Optional[DeliveryStatus] = Query(None),
    search: Optional[str] = Query(None, description="Search by order number"),
):
    """Get paginated list of orders, newest first."""
    service = OrderQueryService(db)
    skip = (page - 1) * size

    orders, total = await service.list_orders(
        status=status.value if status else None,
        date_from=date_from,
        date_to=date_to,
        customer_id=customer_id,
        payment_status=payment_status.value if payment_status else None,
        delivery_status=delivery_status.value if delivery_status else None,
        search=search,
        skip=skip,
        limit=size,
    )

    return OrderListResponse(
        items=[_build_order_response(o) for o in orders],
        total=total,
        page=page,
        size=size,
        pages=ceil(total / size) if total > 0 else 1,
    )


@router.post(
    "",
    response_model=OrderView,
    status_code=status.HTTP_201_CREATED,
)
async def create_order(
    data: OrderCreate,
    db: DB,
    actor: Actor,
):
    """Create an order in Pending."""
    service = OrderLifecycleService(db)
    try:
        order = await service.create_order(data, actor=actor)
    except OrderDeskError as e:
        raise http_error(e)
    return _build_order_response(order)


@router.get(
    "/{order_id}",
    response_model=OrderView,
)
async def get_order(
    order_id: uuid.UUID,
    db: DB,
):
    """Get order details with derived display fields."""
    try:
        order = await OrderQueryService(db).get_order(order_id)
    except OrderDeskError as e:
        raise http_error(e)
    return _build_order_response(order)


@router.get(
    "/{order_id}/actions",
    response_model=AllowedActionsResponse,
)
async def get_order_actions(
    order_id: uuid.UUID,
    db: DB,
):
    """Actions that are legal for the order right now."""
    try:
        order = await OrderQueryService(db).get_order(order_id)
    except OrderDeskError as e:
        raise http_error(e)

    return AllowedActionsResponse(
        order_id=order.id,
        status=order.status,
        delivery_status=order.delivery_status,
        allowed_actions=get_allowed_actions(order.status, order.delivery_status),
        next_expected_action=next_expected_action(order.status, order.delivery_status),
    )


@router.post(
    "/{order_id}/transition",
    response_model=TransitionResponse,
)
async def transition_order(
    order_id: uuid.UUID,
    data: TransitionRequest,
    db: DB,
    actor: Actor,
):
    """
    Move an order through its lifecycle.

    Errors: 404 unknown order, 409 concurrent modification / stale
    expected_version, 422 illegal or terminal transition and insufficient
    stock, 503 inventory unavailable, 500 history not recorded.
    """
    service = OrderLifecycleService(db)
    try:
        result = await service.transition(
            order_id,
            data.action,
            actor=actor,
            notes=data.notes,
            tracking_number=data.tracking_number,
            carrier=data.carrier,
            estimated_delivery=data.estimated_delivery,
            expected_version=data.expected_version,
        )
    except OrderDeskError as e:
        raise http_error(e)

    return TransitionResponse(
        order_id=result.order_id,
        status=result.status,
        delivery_status=result.delivery_status,
        version=result.version,
        warnings=result.warnings,
    )


@router.get(
    "/{order_id}/history",
    response_model=List[StatusHistoryResponse],
)
async def get_order_history(
    order_id: uuid.UUID,
    db: DB,
):
    """Status history, oldest first."""
    try:
        await OrderQueryService(db).get_order(order_id)
    except OrderDeskError as e:
        raise http_error(e)

    entries = await StatusHistoryService(db).list_for_order(order_id)
    return [StatusHistoryResponse.model_validate(entry) for entry in entries]
