"""
Order State Machine

This module is the SINGLE SOURCE OF TRUTH for order status transitions.
Every change to Order.status / Order.delivery_status is planned here and
executed by OrderLifecycleService.

Nothing in this module touches the database: attempt_transition() looks only
at its arguments and returns a TransitionPlan describing the new state and
the side effects the dispatcher has to run.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union

from orderdesk.core.enum_utils import get_enum_value, to_enum
from orderdesk.core.exceptions import OrderDeskError
from orderdesk.models.order import OrderStatus, DeliveryStatus, TransitionAction


# =============================================================================
# ERRORS
# =============================================================================

class TransitionError(OrderDeskError):
    """Base class for rejected transitions."""
    error_code = "TRANSITION_ERROR"

    def __init__(self, message: str, status: str = None, action: str = None):
        super().__init__(message, details={"status": status, "action": action})
        self.status = status
        self.action = action


class TerminalStateError(TransitionError):
    """The order is Cancelled or Exchanged and accepts no further actions."""
    error_code = "TERMINAL_STATE"


class IllegalTransitionError(TransitionError):
    """The action is not defined for the order's current state."""
    error_code = "ILLEGAL_TRANSITION"


# =============================================================================
# SIDE EFFECTS
# =============================================================================

class Effect:
    """Side effect identifiers carried by a TransitionPlan."""
    DECREMENT_INVENTORY = "decrement_inventory"
    RELEASE_INVENTORY = "release_inventory"
    APPEND_HISTORY = "append_history"
    SEND_NOTIFICATION = "send_notification"


class NotificationTemplate:
    """Email template names, matching the keys of the email template store."""
    ORDER_CONFIRMATION = "order_confirmation"
    SHIPPING_CONFIRMATION = "shipping_confirmation"
    ORDER_CANCELLED = "order_cancelled"
    ORDER_DELIVERED = "order_delivered"

    @classmethod
    def all(cls) -> List[str]:
        return [
            cls.ORDER_CONFIRMATION, cls.SHIPPING_CONFIRMATION,
            cls.ORDER_CANCELLED, cls.ORDER_DELIVERED,
        ]


@dataclass(frozen=True)
class TransitionRule:
    """
    One row of the transition table.

    failed_delivery guards the rule on the current delivery status:
    None matches anything, True requires Failed Delivery, False excludes it.
    """
    to_status: str
    to_delivery_status: Optional[str]
    effects: Tuple[str, ...] = ()
    notification: Optional[str] = None
    failed_delivery: Optional[bool] = None

    def matches(self, delivery_status: Optional[str]) -> bool:
        if self.failed_delivery is None:
            return True
        is_failed = delivery_status == DeliveryStatus.FAILED_DELIVERY.value
        return is_failed == self.failed_delivery


@dataclass(frozen=True)
class TransitionPlan:
    """Outcome of a legal transition: the new state and the effects to run."""
    action: str
    from_status: str
    from_delivery_status: Optional[str]
    status: str
    delivery_status: Optional[str]
    effects: Tuple[str, ...]
    notification: Optional[str] = None

    def has_effect(self, effect: str) -> bool:
        return effect in self.effects


# =============================================================================
# TRANSITION RULES
# =============================================================================

# (current status, action) -> rule
# Every rule appends exactly one history entry.
ORDER_TRANSITIONS: Dict[Tuple[str, str], TransitionRule] = {
    (OrderStatus.PENDING.value, TransitionAction.CONFIRM.value): TransitionRule(
        to_status=OrderStatus.PACKED.value,
        to_delivery_status=DeliveryStatus.AWAITING_DISPATCH.value,
        effects=(Effect.DECREMENT_INVENTORY, Effect.APPEND_HISTORY, Effect.SEND_NOTIFICATION),
        notification=NotificationTemplate.ORDER_CONFIRMATION,
    ),
    (OrderStatus.PENDING.value, TransitionAction.CANCEL.value): TransitionRule(
        to_status=OrderStatus.CANCELLED.value,
        to_delivery_status=None,
        effects=(Effect.APPEND_HISTORY, Effect.SEND_NOTIFICATION),
        notification=NotificationTemplate.ORDER_CANCELLED,
    ),
    (OrderStatus.PACKED.value, TransitionAction.SHIP.value): TransitionRule(
        to_status=OrderStatus.SHIPPED.value,
        to_delivery_status=DeliveryStatus.OUT_FOR_DELIVERY.value,
        effects=(Effect.APPEND_HISTORY, Effect.SEND_NOTIFICATION),
        notification=NotificationTemplate.SHIPPING_CONFIRMATION,
    ),
    (OrderStatus.PACKED.value, TransitionAction.CANCEL.value): TransitionRule(
        to_status=OrderStatus.CANCELLED.value,
        to_delivery_status=None,
        effects=(Effect.RELEASE_INVENTORY, Effect.APPEND_HISTORY, Effect.SEND_NOTIFICATION),
        notification=NotificationTemplate.ORDER_CANCELLED,
    ),
    (OrderStatus.SHIPPED.value, TransitionAction.MARK_DELIVERED.value): TransitionRule(
        to_status=OrderStatus.DELIVERED.value,
        to_delivery_status=DeliveryStatus.DELIVERED.value,
        effects=(Effect.APPEND_HISTORY, Effect.SEND_NOTIFICATION),
        notification=NotificationTemplate.ORDER_DELIVERED,
    ),
    (OrderStatus.SHIPPED.value, TransitionAction.MARK_FAILED_DELIVERY.value): TransitionRule(
        to_status=OrderStatus.SHIPPED.value,
        to_delivery_status=DeliveryStatus.FAILED_DELIVERY.value,
        effects=(Effect.APPEND_HISTORY,),
        failed_delivery=False,
    ),
    # Delivery retry after a failed attempt
    (OrderStatus.SHIPPED.value, TransitionAction.MARK_OUT_FOR_DELIVERY.value): TransitionRule(
        to_status=OrderStatus.SHIPPED.value,
        to_delivery_status=DeliveryStatus.OUT_FOR_DELIVERY.value,
        effects=(Effect.APPEND_HISTORY,),
        failed_delivery=True,
    ),
    # Replacement stock is handled outside the order record
    (OrderStatus.DELIVERED.value, TransitionAction.EXCHANGE.value): TransitionRule(
        to_status=OrderStatus.EXCHANGED.value,
        to_delivery_status=None,
        effects=(Effect.APPEND_HISTORY,),
    ),
}

TERMINAL_STATUSES = (OrderStatus.CANCELLED.value, OrderStatus.EXCHANGED.value)

# Label shown in the order list for what should happen next
EXPECTED_ACTIONS: Dict[str, str] = {
    OrderStatus.PENDING.value: "Confirm within 24 hrs",
    OrderStatus.PACKED.value: "Ship order",
    OrderStatus.SHIPPED.value: "Awaiting delivery confirmation",
    OrderStatus.DELIVERED.value: "Delivered successfully",
    OrderStatus.CANCELLED.value: "Refund initiated",
    OrderStatus.EXCHANGED.value: "New item dispatched",
}
RETRY_DELIVERY_LABEL = "Retry delivery"


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def is_terminal(status: Union[str, OrderStatus]) -> bool:
    """Is this a terminal (final) state?"""
    return get_enum_value(status) in TERMINAL_STATUSES


def attempt_transition(
    status: Union[str, OrderStatus],
    delivery_status: Union[str, DeliveryStatus, None],
    action: Union[str, TransitionAction],
) -> TransitionPlan:
    """
    Decide whether `action` is legal from the given state.

    Returns:
        TransitionPlan with the new status / delivery status and side effects

    Raises:
        TerminalStateError: current status is Cancelled or Exchanged
        IllegalTransitionError: no rule for this (status, delivery status, action)
    """
    current_status = get_enum_value(status)
    current_delivery = get_enum_value(delivery_status)
    action_value = get_enum_value(action)

    if is_terminal(current_status):
        raise TerminalStateError(
            f"Order in '{current_status}' status cannot be modified. This is a terminal state.",
            status=current_status,
            action=action_value,
        )

    if to_enum(action_value, TransitionAction) is None:
        raise IllegalTransitionError(
            f"Unknown action '{action_value}'",
            status=current_status,
            action=action_value,
        )

    rule = ORDER_TRANSITIONS.get((current_status, action_value))
    if rule is None or not rule.matches(current_delivery):
        allowed = get_allowed_actions(current_status, current_delivery)
        state = current_status
        if current_delivery:
            state = f"{current_status} / {current_delivery}"
        raise IllegalTransitionError(
            f"Cannot '{action_value}' an order in '{state}'. "
            f"Allowed actions: {', '.join(allowed) or 'none'}",
            status=current_status,
            action=action_value,
        )

    return TransitionPlan(
        action=action_value,
        from_status=current_status,
        from_delivery_status=current_delivery,
        status=rule.to_status,
        delivery_status=rule.to_delivery_status,
        effects=rule.effects,
        notification=rule.notification,
    )


def get_allowed_actions(
    status: Union[str, OrderStatus],
    delivery_status: Union[str, DeliveryStatus, None] = None,
) -> List[str]:
    """Get the actions that are legal from the current state, in table order."""
    current_status = get_enum_value(status)
    current_delivery = get_enum_value(delivery_status)
    return [
        action
        for (from_status, action), rule in ORDER_TRANSITIONS.items()
        if from_status == current_status and rule.matches(current_delivery)
    ]


def next_expected_action(
    status: Union[str, OrderStatus],
    delivery_status: Union[str, DeliveryStatus, None] = None,
) -> str:
    """Human-readable hint of what should happen to the order next."""
    current_status = get_enum_value(status)
    if (
        current_status == OrderStatus.SHIPPED.value
        and get_enum_value(delivery_status) == DeliveryStatus.FAILED_DELIVERY.value
    ):
        return RETRY_DELIVERY_LABEL
    return EXPECTED_ACTIONS.get(current_status, "")
