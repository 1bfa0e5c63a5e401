"""Append-only status history for orders."""
import logging
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.core.exceptions import EffectError
from orderdesk.models.order import OrderStatusHistory

logger = logging.getLogger(__name__)


class HistoryAppendError(EffectError):
    """The history entry could not be written; the transition is aborted."""
    error_code = "HISTORY_APPEND_FAILED"


class StatusHistoryService:
    """
    Writes and reads OrderStatusHistory rows.

    Entries are only ever inserted, inside the same transaction as the
    status change they record.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(
        self,
        order_id: uuid.UUID,
        status: str,
        action: Optional[str] = None,
        from_status: Optional[str] = None,
        delivery_status: Optional[str] = None,
        notes: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> OrderStatusHistory:
        entry = OrderStatusHistory(
            order_id=order_id,
            action=action,
            from_status=from_status,
            status=status,
            delivery_status=delivery_status,
            notes=notes,
            created_by=created_by,
        )
        self.db.add(entry)
        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            logger.error(f"Failed to append status history for order {order_id}: {e}")
            raise HistoryAppendError(
                f"Could not record status change for order {order_id}",
                details={"order_id": str(order_id), "status": status},
            ) from e
        return entry

    async def list_for_order(self, order_id: uuid.UUID) -> List[OrderStatusHistory]:
        """Entries for one order, oldest first."""
        result = await self.db.execute(
            select(OrderStatusHistory)
            .where(OrderStatusHistory.order_id == order_id)
            .order_by(OrderStatusHistory.created_at, OrderStatusHistory.id)
        )
        return list(result.scalars().all())
