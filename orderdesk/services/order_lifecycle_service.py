"""
Order Lifecycle Service

The only writer of Order.status / Order.delivery_status. A transition runs
in one database transaction:

1. load the order and check the caller's expected_version
2. plan the transition (pure, order_state_machine.attempt_transition)
3. write the new state; the UPDATE carries `WHERE version = :read_version`
4. inventory movement + history entry (EffectDispatcher.apply_effects)
5. commit, or roll back and revert stock moved by a remote inventory service

Customer emails go out after the commit and can only add warnings.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Union

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from orderdesk.config import settings
from orderdesk.core.enum_utils import get_enum_value
from orderdesk.core.exceptions import OrderDeskError
from orderdesk.models.order import Order, OrderItem, OrderStatus, TransitionAction
from orderdesk.schemas.order import OrderCreate
from orderdesk.services.effect_dispatcher import EffectDispatcher
from orderdesk.services.order_query_service import OrderNotFoundError
from orderdesk.services.order_state_machine import TransitionPlan, attempt_transition
from orderdesk.services.status_history_service import StatusHistoryService

logger = logging.getLogger(__name__)

ORDER_CREATED_NOTE = "Order created"

# Actions that may carry new shipment details
SHIPMENT_ACTIONS = (
    TransitionAction.SHIP.value,
    TransitionAction.MARK_OUT_FOR_DELIVERY.value,
)


class OrderConflictError(OrderDeskError):
    """The order changed since the caller read it."""
    error_code = "CONFLICT"


class OrderValidationError(OrderDeskError):
    """Order intake data is invalid."""
    error_code = "VALIDATION_ERROR"


@dataclass
class TransitionResult:
    """
    Committed transition outcome returned to the caller.

    The state fields are captured right after commit so they stay valid
    even if the post-commit notification bookkeeping rolls the session back.
    """
    order_id: uuid.UUID
    order_number: str
    status: str
    delivery_status: Optional[str]
    version: int
    plan: TransitionPlan
    warnings: List[str] = field(default_factory=list)


class OrderLifecycleService:
    """Creates orders and moves them through the lifecycle."""

    def __init__(self, db: AsyncSession, dispatcher: Optional[EffectDispatcher] = None):
        self.db = db
        self.dispatcher = dispatcher or EffectDispatcher(db)

    async def generate_order_number(self) -> str:
        """Generate unique order number: ORD-YYYYMMDD-XXXX"""
        today = datetime.now(timezone.utc).strftime("%Y%m%d")
        prefix = f"ORD-{today}-"

        # Get count of orders today
        stmt = select(func.count(Order.id)).where(
            Order.order_number.like(f"{prefix}%")
        )
        count = (await self.db.execute(stmt)).scalar() or 0

        return f"{prefix}{(count + 1):04d}"

    # ==================== INTAKE ====================

    def _validate_intake(self, data: OrderCreate) -> None:
        if not data.items:
            raise OrderValidationError("Order must contain at least one item")
        for item in data.items:
            if item.quantity < 1:
                raise OrderValidationError(
                    f"Quantity for {item.product_name} must be at least 1",
                    details={"product_id": str(item.product_id)},
                )
            if item.unit_price < 0:
                raise OrderValidationError(
                    f"Unit price for {item.product_name} cannot be negative",
                    details={"product_id": str(item.product_id)},
                )
        if data.shipping_cost is not None and data.shipping_cost < 0:
            raise OrderValidationError("Shipping cost cannot be negative")

    async def create_order(self, data: OrderCreate, actor: Optional[str] = None) -> Order:
        """Create a new order in Pending with its creation history entry."""
        self._validate_intake(data)

        order_number = await self.generate_order_number()
        shipping_cost = data.shipping_cost or Decimal("0")

        order = Order(
            order_number=order_number,
            customer_id=data.customer_id,
            customer_name=data.customer_name,
            customer_email=data.customer_email,
            phone=data.phone,
            shipping_address=(
                data.shipping_address.model_dump(exclude_none=True)
                if data.shipping_address else None
            ),
            status=OrderStatus.PENDING.value,
            delivery_status=None,
            payment_method=data.payment_method,
            payment_status=get_enum_value(data.payment_status),
            shipping_cost=shipping_cost,
            currency=(data.currency or settings.DEFAULT_CURRENCY).upper(),
            notes=data.notes,
        )

        subtotal = Decimal("0")
        for item_data in data.items:
            line_total = item_data.unit_price * item_data.quantity
            subtotal += line_total
            order.items.append(OrderItem(
                product_id=item_data.product_id,
                product_name=item_data.product_name,
                product_sku=item_data.product_sku,
                quantity=item_data.quantity,
                unit_price=item_data.unit_price,
                total_price=line_total,
                location_id=item_data.location_id,
            ))
        order.total_amount = subtotal + shipping_cost

        try:
            self.db.add(order)
            await self.db.flush()
            await StatusHistoryService(self.db).append(
                order_id=order.id,
                status=order.status,
                action=None,
                from_status=None,
                delivery_status=None,
                notes=ORDER_CREATED_NOTE,
                created_by=actor,
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Order {order.order_number} created for customer {order.customer_id} ({order.total_amount})")
        return order

    # ==================== TRANSITIONS ====================

    async def transition(
        self,
        order_id: uuid.UUID,
        action: Union[str, TransitionAction],
        actor: Optional[str] = None,
        notes: Optional[str] = None,
        tracking_number: Optional[str] = None,
        carrier: Optional[str] = None,
        estimated_delivery: Optional[datetime] = None,
        expected_version: Optional[int] = None,
    ) -> TransitionResult:
        """
        Apply `action` to an order.

        Raises:
            OrderNotFoundError: no such order
            OrderConflictError: expected_version mismatch or concurrent update
            TerminalStateError, IllegalTransitionError: action not legal now
            InsufficientStockError, InventoryUnavailableError: stock effect failed
            HistoryAppendError: history entry could not be written
        """
        order = await self.db.get(Order, order_id)
        if order is None:
            raise OrderNotFoundError(order_id)

        if expected_version is not None and order.version != expected_version:
            raise OrderConflictError(
                f"Order {order.order_number} is at version {order.version}, "
                f"expected {expected_version}",
                details={"current_version": order.version, "expected_version": expected_version},
            )

        plan = attempt_transition(order.status, order.delivery_status, action)

        moves = []
        try:
            order.status = plan.status
            order.delivery_status = plan.delivery_status
            if plan.action in SHIPMENT_ACTIONS:
                if tracking_number is not None:
                    order.tracking_number = tracking_number
                if carrier is not None:
                    order.carrier = carrier
                if estimated_delivery is not None:
                    order.estimated_delivery = estimated_delivery

            # Compare-and-set on the version column
            await self.db.flush()

            moves = await self.dispatcher.apply_effects(order, plan, actor=actor, notes=notes)
            await self.db.commit()

        except StaleDataError as e:
            await self.db.rollback()
            await self.dispatcher.revert_stock_moves(moves, actor=actor)
            logger.warning(f"Concurrent update on order {order_id} rejected ({plan.action})")
            raise OrderConflictError(
                f"Order {order_id} was modified by another request",
                details={"order_id": str(order_id)},
            ) from e
        except Exception as e:
            await self.db.rollback()
            await self.dispatcher.revert_stock_moves(moves, actor=actor)
            logger.error(f"Transition {plan.action} on order {order_id} rolled back: {e}")
            raise

        logger.info(
            f"Order {order.order_number}: {plan.from_status} -> {plan.status} "
            f"({plan.action}, delivery={plan.delivery_status}, version={order.version}) by {actor}"
        )

        result = TransitionResult(
            order_id=order.id,
            order_number=order.order_number,
            status=order.status,
            delivery_status=order.delivery_status,
            version=order.version,
            plan=plan,
        )
        result.warnings = await self._notify(order, plan)
        return result

    async def _notify(self, order: Order, plan: TransitionPlan) -> List[str]:
        """Post-commit notifications; failures end up as warnings."""
        try:
            warnings = await self.dispatcher.dispatch_notifications(order, plan)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Notification bookkeeping failed for order {order.order_number}: {e}")
            return [f"Notification for order {order.order_number} could not be processed"]
        return warnings
