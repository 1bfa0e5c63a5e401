"""
Orders API integration tests.

Real SQLite database, real local inventory, unconfigured SMTP: every
notification therefore ends up as a warning on an otherwise successful
response.
"""
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from orderdesk.services import effect_dispatcher
from orderdesk.services.status_history_service import HistoryAppendError, StatusHistoryService

from tests.component.mocks import UnavailableInventory
from tests.factories import order_payload

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]

ORDERS = "/api/v1/orders"


async def create_order(client, product_id, **kwargs) -> dict:
    response = await client.post(ORDERS, json=order_payload(product_id, **kwargs))
    assert response.status_code == 201, response.text
    return response.json()


async def transition(client, order_id, action, **body):
    return await client.post(
        f"{ORDERS}/{order_id}/transition",
        json={"action": action, **body},
        headers={"X-Actor-Id": "ops@store"},
    )


async def stock_total(client, product_id) -> int:
    response = await client.get(f"/api/v1/inventory/{product_id}")
    return response.json()["total"]


# =============================================================================
# Intake & reads
# =============================================================================

class TestOrderIntake:

    async def test_create_order(self, client, stocked_product):
        order = await create_order(client, stocked_product, quantity=2)

        assert order["status"] == "Pending"
        assert order["delivery_status"] is None
        assert order["version"] == 1
        assert float(order["total_amount"]) == 1048.0
        assert order["items_summary"] == "2 × Wireless Headphones"
        assert order["address"] == "12 MG Road, Bengaluru, Karnataka, 560001, IN"
        assert order["next_expected_action"] == "Confirm within 24 hrs"
        assert order["allowed_actions"] == ["confirm", "cancel"]
        assert order["item_count"] == 2

    async def test_create_order_requires_items(self, client, stocked_product):
        payload = order_payload(stocked_product)
        payload["items"] = []

        response = await client.post(ORDERS, json=payload)

        assert response.status_code == 422

    async def test_get_order(self, client, stocked_product):
        created = await create_order(client, stocked_product)

        response = await client.get(f"{ORDERS}/{created['id']}")

        assert response.status_code == 200
        assert response.json()["order_number"] == created["order_number"]

    async def test_get_unknown_order(self, client):
        response = await client.get(f"{ORDERS}/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["detail"]["error_code"] == "ORDER_NOT_FOUND"

    async def test_allowed_actions(self, client, stocked_product):
        created = await create_order(client, stocked_product)
        await transition(client, created["id"], "confirm")

        response = await client.get(f"{ORDERS}/{created['id']}/actions")

        assert response.json() == {
            "order_id": created["id"],
            "status": "Packed",
            "delivery_status": "Awaiting Dispatch",
            "allowed_actions": ["ship", "cancel"],
            "next_expected_action": "Ship order",
        }


class TestOrderList:

    async def test_filters_and_pagination(self, client, stocked_product):
        orders = [await create_order(client, stocked_product, quantity=1) for _ in range(3)]
        await transition(client, orders[0]["id"], "confirm")

        response = await client.get(ORDERS, params={"status": "Packed"})
        body = response.json()
        assert body["total"] == 1
        assert body["items"][0]["id"] == orders[0]["id"]

        response = await client.get(ORDERS, params={"page": 2, "size": 2})
        body = response.json()
        assert body["total"] == 3
        assert body["pages"] == 2
        assert len(body["items"]) == 1

    async def test_newest_first(self, client, stocked_product):
        first = await create_order(client, stocked_product, quantity=1)
        second = await create_order(client, stocked_product, quantity=1)

        body = (await client.get(ORDERS)).json()

        assert [o["id"] for o in body["items"]] == [second["id"], first["id"]]

    async def test_date_range(self, client, stocked_product):
        await create_order(client, stocked_product, quantity=1)
        tomorrow = (datetime.now(timezone.utc) + timedelta(days=1)).isoformat()

        body = (await client.get(ORDERS, params={"from": tomorrow})).json()

        assert body["total"] == 0
        assert body["items"] == []

    async def test_search_by_order_number(self, client, stocked_product):
        created = await create_order(client, stocked_product, quantity=1)

        body = (await client.get(ORDERS, params={"search": created["order_number"][-4:]})).json()

        assert body["total"] == 1

    async def test_invalid_status_filter(self, client):
        response = await client.get(ORDERS, params={"status": "Lost"})
        assert response.status_code == 422


# =============================================================================
# Lifecycle scenarios
# =============================================================================

class TestLifecycleScenarios:

    async def test_confirm(self, client, stocked_product):
        created = await create_order(client, stocked_product, quantity=2)

        response = await transition(client, created["id"], "confirm")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "Packed"
        assert body["delivery_status"] == "Awaiting Dispatch"
        assert body["version"] == 2
        assert body["warnings"] == [
            "Notification 'order_confirmation' was not sent: SMTP not configured"
        ]
        assert await stock_total(client, stocked_product) == 8

    async def test_ship_then_deliver(self, client, stocked_product):
        created = await create_order(client, stocked_product)
        await transition(client, created["id"], "confirm")

        shipped = await transition(
            client, created["id"], "ship", tracking_number="AWB123456", carrier="Delhivery"
        )
        delivered = await transition(client, created["id"], "mark_delivered")

        assert shipped.json()["delivery_status"] == "Out for Delivery"
        assert delivered.json()["status"] == "Delivered"
        assert delivered.json()["delivery_status"] == "Delivered"

        order = (await client.get(f"{ORDERS}/{created['id']}")).json()
        assert order["tracking_number"] == "AWB123456"
        assert order["allowed_actions"] == ["exchange"]

    async def test_illegal_skip(self, client, stocked_product):
        created = await create_order(client, stocked_product)

        response = await transition(client, created["id"], "mark_delivered")

        assert response.status_code == 422
        assert response.json()["detail"]["error_code"] == "ILLEGAL_TRANSITION"
        order = (await client.get(f"{ORDERS}/{created['id']}")).json()
        assert order["status"] == "Pending"
        assert order["version"] == 1

    async def test_cancel_after_confirm_restocks(self, client, stocked_product):
        created = await create_order(client, stocked_product, quantity=4)
        await transition(client, created["id"], "confirm")
        assert await stock_total(client, stocked_product) == 6

        response = await transition(client, created["id"], "cancel")

        assert response.json()["status"] == "Cancelled"
        assert await stock_total(client, stocked_product) == 10

    async def test_two_lines_of_one_product(self, client, stocked_product):
        created = await create_order(client, None, items=[
            {"product_id": stocked_product, "quantity": 2},
            {"product_id": stocked_product, "quantity": 3, "product_name": "Wireless Headphones (Gift)"},
        ])

        confirmed = await transition(client, created["id"], "confirm")
        assert confirmed.status_code == 200
        assert await stock_total(client, stocked_product) == 5

        await transition(client, created["id"], "cancel")
        assert await stock_total(client, stocked_product) == 10

    async def test_terminal_order(self, client, stocked_product):
        created = await create_order(client, stocked_product)
        await transition(client, created["id"], "cancel")

        response = await transition(client, created["id"], "confirm")

        assert response.status_code == 422
        assert response.json()["detail"]["error_code"] == "TERMINAL_STATE"

    async def test_unknown_action_is_rejected_by_schema(self, client, stocked_product):
        created = await create_order(client, stocked_product)

        response = await transition(client, created["id"], "teleport")

        assert response.status_code == 422

    async def test_unknown_order(self, client):
        response = await transition(client, uuid.uuid4(), "confirm")
        assert response.status_code == 404


# =============================================================================
# Failure mapping
# =============================================================================

class TestTransitionFailures:

    async def test_insufficient_stock(self, client, stocked_product):
        created = await create_order(client, stocked_product, quantity=25)

        response = await transition(client, created["id"], "confirm")

        assert response.status_code == 422
        assert response.json()["detail"]["error_code"] == "INSUFFICIENT_STOCK"
        assert await stock_total(client, stocked_product) == 10
        history = (await client.get(f"{ORDERS}/{created['id']}/history")).json()
        assert [h["notes"] for h in history] == ["Order created"]

    async def test_stale_expected_version(self, client, stocked_product):
        created = await create_order(client, stocked_product)
        await transition(client, created["id"], "confirm")

        response = await transition(client, created["id"], "cancel", expected_version=1)

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["error_code"] == "CONFLICT"
        assert detail["details"]["current_version"] == 2

    async def test_inventory_unavailable(self, client, stocked_product, monkeypatch):
        created = await create_order(client, stocked_product)
        monkeypatch.setattr(effect_dispatcher, "get_inventory_backend", lambda db: UnavailableInventory())

        response = await transition(client, created["id"], "confirm")

        assert response.status_code == 503
        assert response.json()["detail"]["error_code"] == "INVENTORY_UNAVAILABLE"
        order = (await client.get(f"{ORDERS}/{created['id']}")).json()
        assert order["status"] == "Pending"

    async def test_history_append_failure(self, client, stocked_product, monkeypatch):
        created = await create_order(client, stocked_product, quantity=3)

        async def failing_append(self, order_id, status, **kwargs):
            raise HistoryAppendError(f"Could not record status change for order {order_id}")

        monkeypatch.setattr(StatusHistoryService, "append", failing_append)

        response = await transition(client, created["id"], "confirm")

        assert response.status_code == 500
        assert response.json()["detail"]["error_code"] == "HISTORY_APPEND_FAILED"
        assert await stock_total(client, stocked_product) == 10


# =============================================================================
# History
# =============================================================================

class TestHistory:

    async def test_entries_oldest_first(self, client, stocked_product):
        created = await create_order(client, stocked_product)
        for action in ("confirm", "ship", "mark_failed_delivery", "mark_out_for_delivery", "mark_delivered"):
            response = await transition(client, created["id"], action)
            assert response.status_code == 200, response.text

        history = (await client.get(f"{ORDERS}/{created['id']}/history")).json()

        assert [h["action"] for h in history] == [
            None, "confirm", "ship", "mark_failed_delivery", "mark_out_for_delivery", "mark_delivered",
        ]
        assert [h["status"] for h in history] == [
            "Pending", "Packed", "Shipped", "Shipped", "Shipped", "Delivered",
        ]
        assert history[3]["delivery_status"] == "Failed Delivery"
        assert all(h["created_by"] == "ops@store" for h in history[1:])

    async def test_history_of_unknown_order(self, client):
        response = await client.get(f"{ORDERS}/{uuid.uuid4()}/history")
        assert response.status_code == 404
