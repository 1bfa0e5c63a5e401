"""
Side-Effect Dispatcher

Runs the effects named in a TransitionPlan. Inventory movements and the
history entry happen inside the caller's transaction (apply_effects); email
notifications run after commit (dispatch_notifications) and only ever
produce warnings.

A remote inventory backend does not share the caller's transaction, so stock
it has already moved is moved back when the transition fails
(revert_stock_moves).
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.config import settings
from orderdesk.core.exceptions import EffectError
from orderdesk.models.inventory import InventoryTransactionType
from orderdesk.models.order import Order
from orderdesk.services.inventory_client import InventoryClient
from orderdesk.services.inventory_service import (
    InventoryService,
    InventoryUnavailableError,
)
from orderdesk.services.notification_service import NotificationService
from orderdesk.services.order_query_service import items_summary, format_total
from orderdesk.services.order_state_machine import Effect, TransitionPlan
from orderdesk.services.status_history_service import StatusHistoryService

logger = logging.getLogger(__name__)


class InventoryBackend(Protocol):
    # True when stock movements commit or roll back with the order
    transactional: bool

    async def get_stock(self, product_id: uuid.UUID) -> dict: ...

    async def choose_location(self, product_id: uuid.UUID, quantity: int) -> uuid.UUID: ...

    async def decrement_stock(
        self, product_id: uuid.UUID, location_id: uuid.UUID, quantity: int,
        reference: str, created_by: Optional[str] = None,
    ) -> bool: ...

    async def increment_stock(
        self, product_id: uuid.UUID, location_id: uuid.UUID, quantity: int,
        reference: str, created_by: Optional[str] = None,
    ) -> bool: ...


@dataclass(frozen=True)
class StockMove:
    """One stock movement applied by a transition."""
    type: str
    product_id: uuid.UUID
    location_id: uuid.UUID
    quantity: int
    reference: str


def get_inventory_backend(db: AsyncSession, actor: Optional[str] = None) -> InventoryBackend:
    """Remote inventory service when configured, otherwise the local tables."""
    if settings.INVENTORY_SERVICE_URL:
        return InventoryClient(actor=actor)
    return InventoryService(db)


def new_attempt_id() -> str:
    return uuid.uuid4().hex[:8]


def sale_reference(order_id: uuid.UUID, item_id: uuid.UUID, attempt: str) -> str:
    return f"{order_id}:{item_id}:sale:{attempt}"


def release_reference(order_id: uuid.UUID, item_id: uuid.UUID, attempt: str) -> str:
    return f"{order_id}:{item_id}:release:{attempt}"


def undo_reference(reference: str) -> str:
    return f"{reference}:undo"


def order_template_variables(order: Order) -> dict:
    return {
        "customer_name": order.customer_name,
        "order_number": order.order_number,
        "items": items_summary(order),
        "total": format_total(order),
        "tracking_number": order.tracking_number,
        "carrier": order.carrier,
    }


class EffectDispatcher:

    def __init__(
        self,
        db: AsyncSession,
        inventory: Optional[InventoryBackend] = None,
        history: Optional[StatusHistoryService] = None,
        notifications: Optional[NotificationService] = None,
        inventory_timeout: Optional[float] = None,
    ):
        self.db = db
        self.inventory = inventory or get_inventory_backend(db)
        self.history = history or StatusHistoryService(db)
        self.notifications = notifications or NotificationService(db)
        self.inventory_timeout = (
            inventory_timeout if inventory_timeout is not None
            else settings.INVENTORY_TIMEOUT_SECONDS
        )

    async def _bounded(self, coro, what: str):
        try:
            return await asyncio.wait_for(coro, timeout=self.inventory_timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Inventory {what} timed out after {self.inventory_timeout}s")
            raise InventoryUnavailableError(
                f"Inventory {what} timed out after {self.inventory_timeout}s"
            ) from e

    # ==================== TRANSACTIONAL EFFECTS ====================

    async def apply_effects(
        self,
        order: Order,
        plan: TransitionPlan,
        actor: Optional[str] = None,
        notes: Optional[str] = None,
        attempt: Optional[str] = None,
    ) -> List[StockMove]:
        """
        Inventory movement (if any) followed by the history entry.

        Stock references are scoped to the line item and to `attempt`, so
        re-running the same attempt never moves stock twice. Returns the
        movements applied; if anything fails they are reverted on a
        non-transactional backend before the error propagates.

        Raises:
            InsufficientStockError, InventoryUnavailableError: inventory failed
            HistoryAppendError: the history entry could not be written
        """
        attempt = attempt or new_attempt_id()
        moves: List[StockMove] = []
        try:
            if plan.has_effect(Effect.DECREMENT_INVENTORY):
                await self._decrement_inventory(order, actor, attempt, moves)
            elif plan.has_effect(Effect.RELEASE_INVENTORY):
                await self._release_inventory(order, actor, attempt, moves)

            if plan.has_effect(Effect.APPEND_HISTORY):
                await self.history.append(
                    order_id=order.id,
                    status=plan.status,
                    action=plan.action,
                    from_status=plan.from_status,
                    delivery_status=plan.delivery_status,
                    notes=notes,
                    created_by=actor,
                )
        except Exception:
            await self.revert_stock_moves(moves, actor=actor)
            raise
        return moves

    async def _decrement_inventory(
        self, order: Order, actor: Optional[str], attempt: str, moves: List[StockMove]
    ) -> None:
        for item in order.items:
            if item.location_id is None:
                item.location_id = await self._bounded(
                    self.inventory.choose_location(item.product_id, item.quantity),
                    "stock lookup",
                )
            reference = sale_reference(order.id, item.id, attempt)
            applied = await self._bounded(
                self.inventory.decrement_stock(
                    item.product_id, item.location_id, item.quantity, reference, created_by=actor
                ),
                "stock decrement",
            )
            if applied:
                moves.append(StockMove(
                    InventoryTransactionType.SALE.value,
                    item.product_id, item.location_id, item.quantity, reference,
                ))
                logger.info(
                    f"Order {order.order_number}: took {item.quantity} x {item.product_id} "
                    f"from location {item.location_id}"
                )

    async def _release_inventory(
        self, order: Order, actor: Optional[str], attempt: str, moves: List[StockMove]
    ) -> None:
        for item in order.items:
            if item.location_id is None:
                # Never allocated, nothing to give back
                logger.warning(
                    f"Order {order.order_number}: item {item.product_id} has no stock location, skipping release"
                )
                continue
            reference = release_reference(order.id, item.id, attempt)
            applied = await self._bounded(
                self.inventory.increment_stock(
                    item.product_id, item.location_id, item.quantity, reference, created_by=actor
                ),
                "stock release",
            )
            if applied:
                moves.append(StockMove(
                    InventoryTransactionType.RELEASE.value,
                    item.product_id, item.location_id, item.quantity, reference,
                ))
                logger.info(
                    f"Order {order.order_number}: released {item.quantity} x {item.product_id} "
                    f"to location {item.location_id}"
                )

    async def revert_stock_moves(self, moves: List[StockMove], actor: Optional[str] = None) -> None:
        """
        Undo `moves` on a backend outside the caller's transaction.

        A transactional backend is rolled back with the session instead.
        Moves that cannot be undone are logged and left for reconciliation.
        """
        if not moves or self.inventory.transactional:
            return

        for move in reversed(moves):
            reference = undo_reference(move.reference)
            if move.type == InventoryTransactionType.SALE.value:
                call = self.inventory.increment_stock
            else:
                call = self.inventory.decrement_stock
            try:
                await self._bounded(
                    call(move.product_id, move.location_id, move.quantity, reference, created_by=actor),
                    "stock revert",
                )
            except EffectError as e:
                logger.error(
                    f"Could not revert {move.reference} ({move.quantity} x {move.product_id} "
                    f"at location {move.location_id}): {e.message}"
                )
            else:
                logger.info(f"Reverted {move.reference}")

    # ==================== POST-COMMIT EFFECTS ====================

    async def dispatch_notifications(self, order: Order, plan: TransitionPlan) -> List[str]:
        """Send the customer email for the transition. Returns warnings."""
        warnings: List[str] = []
        if not plan.has_effect(Effect.SEND_NOTIFICATION) or not plan.notification:
            return warnings

        sent = await self.notifications.send(
            plan.notification,
            order_template_variables(order),
            order.customer_email,
            order_id=order.id,
        )
        if not sent:
            warnings.append(
                f"Notification '{plan.notification}' was not sent: {self.notifications.last_error}"
            )
        return warnings
