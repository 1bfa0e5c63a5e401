"""Delivery board: active deliveries and delivery statistics."""
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.models.order import Order, OrderStatus, DeliveryStatus
from orderdesk.services.order_query_service import items_summary, format_address

ACTIVE_STATUSES = [OrderStatus.PACKED.value, OrderStatus.SHIPPED.value]
TRACKED_STATUSES = [
    OrderStatus.PACKED.value,
    OrderStatus.SHIPPED.value,
    OrderStatus.DELIVERED.value,
]
STATS_WINDOW_DAYS = 30


class DeliveryService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_active_deliveries(self, limit: int = 100) -> List[Dict]:
        """Orders in Packed/Shipped, newest first."""
        result = await self.db.execute(
            select(Order)
            .where(Order.status.in_(ACTIVE_STATUSES))
            .order_by(Order.created_at.desc(), Order.order_number.desc())
            .limit(limit)
        )
        return [
            {
                "order_id": order.id,
                "order_number": order.order_number,
                "customer_name": order.customer_name,
                "phone": order.phone,
                "address": format_address(order.shipping_address),
                "items_summary": items_summary(order),
                "status": order.status,
                "delivery_status": order.delivery_status or DeliveryStatus.AWAITING_DISPATCH.value,
                "tracking_number": order.tracking_number,
                "carrier": order.carrier,
                "estimated_delivery": order.estimated_delivery,
                "created_at": order.created_at,
                "updated_at": order.updated_at,
            }
            for order in result.scalars().all()
        ]

    async def get_delivery_stats(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """
        Counts over orders created in the last 30 days that are Packed,
        Shipped or Delivered.

        delivered_today counts Delivered orders last updated since midnight UTC.
        """
        now = now or datetime.now(timezone.utc)
        window_start = now - timedelta(days=STATS_WINDOW_DAYS)
        today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)

        result = await self.db.execute(
            select(Order.status, Order.delivery_status, Order.updated_at)
            .where(
                and_(
                    Order.status.in_(TRACKED_STATUSES),
                    Order.created_at >= window_start,
                )
            )
        )

        stats = {
            "awaiting_dispatch": 0,
            "out_for_delivery": 0,
            "failed_delivery": 0,
            "delivered_today": 0,
        }
        for status, delivery_status, updated_at in result.all():
            delivery_status = delivery_status or DeliveryStatus.AWAITING_DISPATCH.value
            if delivery_status == DeliveryStatus.AWAITING_DISPATCH.value:
                stats["awaiting_dispatch"] += 1
            elif delivery_status == DeliveryStatus.OUT_FOR_DELIVERY.value:
                stats["out_for_delivery"] += 1
            elif delivery_status == DeliveryStatus.FAILED_DELIVERY.value:
                stats["failed_delivery"] += 1
            elif delivery_status == DeliveryStatus.DELIVERED.value:
                if updated_at is not None and _as_utc(updated_at) >= today_start:
                    stats["delivered_today"] += 1
        return stats

    async def count_active(self) -> int:
        result = await self.db.execute(
            select(func.count(Order.id)).where(Order.status.in_(ACTIVE_STATUSES))
        )
        return result.scalar() or 0


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
