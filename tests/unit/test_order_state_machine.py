"""
Order state machine unit tests.

Pure functions only: no database, no collaborators.
"""
import pytest

from orderdesk.core.exceptions import OrderDeskError
from orderdesk.models.order import OrderStatus, DeliveryStatus, TransitionAction
from orderdesk.services.order_state_machine import (
    Effect,
    IllegalTransitionError,
    NotificationTemplate,
    ORDER_TRANSITIONS,
    RETRY_DELIVERY_LABEL,
    TerminalStateError,
    attempt_transition,
    get_allowed_actions,
    is_terminal,
    next_expected_action,
)

pytestmark = pytest.mark.unit


# =============================================================================
# Legal transitions
# =============================================================================

class TestLegalTransitions:

    def test_confirm_packs_and_takes_stock(self):
        plan = attempt_transition(OrderStatus.PENDING, None, TransitionAction.CONFIRM)

        assert plan.status == "Packed"
        assert plan.delivery_status == "Awaiting Dispatch"
        assert plan.from_status == "Pending"
        assert plan.has_effect(Effect.DECREMENT_INVENTORY)
        assert plan.has_effect(Effect.APPEND_HISTORY)
        assert plan.notification == NotificationTemplate.ORDER_CONFIRMATION

    def test_ship_goes_out_for_delivery(self):
        plan = attempt_transition("Packed", "Awaiting Dispatch", "ship")

        assert plan.status == "Shipped"
        assert plan.delivery_status == "Out for Delivery"
        assert not plan.has_effect(Effect.DECREMENT_INVENTORY)
        assert plan.notification == NotificationTemplate.SHIPPING_CONFIRMATION

    def test_mark_delivered(self):
        plan = attempt_transition("Shipped", "Out for Delivery", "mark_delivered")

        assert plan.status == "Delivered"
        assert plan.delivery_status == "Delivered"
        assert plan.notification == NotificationTemplate.ORDER_DELIVERED

    def test_cancel_pending_has_nothing_to_release(self):
        plan = attempt_transition("Pending", None, "cancel")

        assert plan.status == "Cancelled"
        assert plan.delivery_status is None
        assert not plan.has_effect(Effect.RELEASE_INVENTORY)
        assert plan.notification == NotificationTemplate.ORDER_CANCELLED

    def test_cancel_packed_releases_stock(self):
        plan = attempt_transition("Packed", "Awaiting Dispatch", "cancel")

        assert plan.status == "Cancelled"
        assert plan.delivery_status is None
        assert plan.has_effect(Effect.RELEASE_INVENTORY)

    def test_failed_delivery_keeps_order_shipped(self):
        plan = attempt_transition("Shipped", "Out for Delivery", "mark_failed_delivery")

        assert plan.status == "Shipped"
        assert plan.delivery_status == "Failed Delivery"
        assert plan.notification is None

    def test_retry_after_failed_delivery(self):
        plan = attempt_transition("Shipped", "Failed Delivery", "mark_out_for_delivery")

        assert plan.status == "Shipped"
        assert plan.delivery_status == "Out for Delivery"

    def test_delivered_after_failed_attempt(self):
        plan = attempt_transition("Shipped", "Failed Delivery", "mark_delivered")
        assert plan.status == "Delivered"

    def test_exchange_has_no_stock_effect(self):
        plan = attempt_transition("Delivered", "Delivered", "exchange")

        assert plan.status == "Exchanged"
        assert plan.delivery_status is None
        assert plan.effects == (Effect.APPEND_HISTORY,)

    def test_every_rule_appends_history(self):
        for rule in ORDER_TRANSITIONS.values():
            assert Effect.APPEND_HISTORY in rule.effects


# =============================================================================
# Rejections
# =============================================================================

class TestRejectedTransitions:

    @pytest.mark.parametrize("status", ["Cancelled", "Exchanged"])
    @pytest.mark.parametrize("action", [a.value for a in TransitionAction])
    def test_terminal_states_reject_every_action(self, status, action):
        with pytest.raises(TerminalStateError) as exc_info:
            attempt_transition(status, None, action)

        assert exc_info.value.status == status
        assert exc_info.value.action == action
        assert exc_info.value.error_code == "TERMINAL_STATE"

    def test_cannot_skip_packing(self):
        with pytest.raises(IllegalTransitionError) as exc_info:
            attempt_transition("Pending", None, "ship")

        assert "Allowed actions: confirm, cancel" in exc_info.value.message

    def test_cannot_cancel_shipped_order(self):
        with pytest.raises(IllegalTransitionError):
            attempt_transition("Shipped", "Out for Delivery", "cancel")

    def test_out_for_delivery_only_as_retry(self):
        with pytest.raises(IllegalTransitionError):
            attempt_transition("Shipped", "Out for Delivery", "mark_out_for_delivery")

    def test_failed_delivery_cannot_repeat(self):
        with pytest.raises(IllegalTransitionError):
            attempt_transition("Shipped", "Failed Delivery", "mark_failed_delivery")

    def test_unknown_action(self):
        with pytest.raises(IllegalTransitionError) as exc_info:
            attempt_transition("Pending", None, "teleport")

        assert exc_info.value.error_code == "ILLEGAL_TRANSITION"
        assert "Unknown action" in exc_info.value.message

    def test_rejections_share_the_service_error_root(self):
        with pytest.raises(OrderDeskError) as exc_info:
            attempt_transition("Delivered", "Delivered", "confirm")

        assert isinstance(exc_info.value, IllegalTransitionError)
        assert exc_info.value.details == {"status": "Delivered", "action": "confirm"}


# =============================================================================
# Helpers
# =============================================================================

class TestHelpers:

    def test_is_terminal(self):
        assert is_terminal(OrderStatus.CANCELLED)
        assert is_terminal("Exchanged")
        assert not is_terminal("Delivered")

    @pytest.mark.parametrize("status,delivery_status,expected", [
        ("Pending", None, ["confirm", "cancel"]),
        ("Packed", "Awaiting Dispatch", ["ship", "cancel"]),
        ("Shipped", "Out for Delivery", ["mark_delivered", "mark_failed_delivery"]),
        ("Shipped", "Failed Delivery", ["mark_delivered", "mark_out_for_delivery"]),
        ("Delivered", "Delivered", ["exchange"]),
        ("Cancelled", None, []),
        ("Exchanged", None, []),
    ])
    def test_allowed_actions(self, status, delivery_status, expected):
        assert get_allowed_actions(status, delivery_status) == expected

    def test_allowed_actions_accept_enums(self):
        actions = get_allowed_actions(OrderStatus.SHIPPED, DeliveryStatus.FAILED_DELIVERY)
        assert "mark_out_for_delivery" in actions

    @pytest.mark.parametrize("status,label", [
        ("Pending", "Confirm within 24 hrs"),
        ("Packed", "Ship order"),
        ("Shipped", "Awaiting delivery confirmation"),
        ("Delivered", "Delivered successfully"),
        ("Cancelled", "Refund initiated"),
        ("Exchanged", "New item dispatched"),
    ])
    def test_next_expected_action(self, status, label):
        assert next_expected_action(status) == label

    def test_next_expected_action_after_failed_delivery(self):
        assert next_expected_action("Shipped", "Failed Delivery") == RETRY_DELIVERY_LABEL
