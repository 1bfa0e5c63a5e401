"""
Read side for orders: filtered listing and the denormalised order view
consumed by list/detail screens.
"""
import uuid
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.core.exceptions import OrderDeskError
from orderdesk.models.order import Order
from orderdesk.services.order_state_machine import get_allowed_actions, next_expected_action


class OrderNotFoundError(OrderDeskError):
    error_code = "ORDER_NOT_FOUND"

    def __init__(self, order_id):
        super().__init__(f"Order {order_id} not found", details={"order_id": str(order_id)})
        self.order_id = order_id


ADDRESS_PARTS = ("line1", "line2", "city", "state", "postal_code", "country")


def items_summary(order: Order) -> str:
    """e.g. "2 × Headphones, 1 × Mug"."""
    return ", ".join(f"{item.quantity} × {item.product_name}" for item in order.items)


def format_address(address: Optional[Dict]) -> str:
    if not address:
        return ""
    if address.get("full_address"):
        return address["full_address"]
    return ", ".join(
        str(address[part]) for part in ADDRESS_PARTS if address.get(part)
    )


def format_total(order: Order) -> str:
    return f"{order.currency} {order.total_amount:,.2f}"


def build_order_view(order: Order) -> Dict:
    """Order fields plus the derived display fields."""
    return {
        "id": order.id,
        "order_number": order.order_number,
        "customer_id": order.customer_id,
        "customer_name": order.customer_name,
        "customer_email": order.customer_email,
        "phone": order.phone,
        "shipping_address": order.shipping_address,
        "status": order.status,
        "delivery_status": order.delivery_status,
        "payment_method": order.payment_method,
        "payment_status": order.payment_status,
        "shipping_cost": order.shipping_cost,
        "total_amount": order.total_amount,
        "currency": order.currency,
        "tracking_number": order.tracking_number,
        "carrier": order.carrier,
        "estimated_delivery": order.estimated_delivery,
        "notes": order.notes,
        "version": order.version,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
        "items": order.items,
        "item_count": order.item_count,
        "items_summary": items_summary(order),
        "address": format_address(order.shipping_address),
        "next_expected_action": next_expected_action(order.status, order.delivery_status),
        "allowed_actions": get_allowed_actions(order.status, order.delivery_status),
    }


class OrderQueryService:
    """Filtered, paginated order listing and single order lookup."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_order(self, order_id: uuid.UUID) -> Order:
        order = await self.db.get(Order, order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    async def list_orders(
        self,
        status: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        customer_id: Optional[uuid.UUID] = None,
        payment_status: Optional[str] = None,
        delivery_status: Optional[str] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Order], int]:
        """Get paginated orders with filters, newest first."""
        filters = []

        if status:
            filters.append(Order.status == status)

        if customer_id:
            filters.append(Order.customer_id == customer_id)

        if payment_status:
            filters.append(Order.payment_status == payment_status)

        if delivery_status:
            filters.append(Order.delivery_status == delivery_status)

        if date_from:
            filters.append(Order.created_at >= date_from)

        if date_to:
            filters.append(Order.created_at <= date_to)

        if search:
            filters.append(Order.order_number.ilike(f"%{search}%"))

        stmt = select(Order)
        count_stmt = select(func.count(Order.id))
        if filters:
            stmt = stmt.where(and_(*filters))
            count_stmt = count_stmt.where(and_(*filters))

        total = (await self.db.execute(count_stmt)).scalar() or 0

        stmt = (
            stmt.order_by(Order.created_at.desc(), Order.order_number.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total
