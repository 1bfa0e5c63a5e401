"""Inventory API: locations, stock updates, low stock and adjustments."""
import uuid

import pytest

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]

INVENTORY = "/api/v1/inventory"


def adjustment(product_id, location_id, quantity=2, type_="SALE", reference="order-1:sale") -> dict:
    return {
        "product_id": str(product_id),
        "location_id": str(location_id),
        "quantity": quantity,
        "type": type_,
        "reference_id": reference,
    }


class TestLocations:

    async def test_create_and_list(self, client):
        response = await client.post(f"{INVENTORY}/locations", json={"name": "Mumbai DC", "address": "Bhiwandi"})
        assert response.status_code == 201

        locations = (await client.get(f"{INVENTORY}/locations")).json()

        assert [loc["name"] for loc in locations] == ["Mumbai DC"]
        assert locations[0]["is_active"] is True


class TestStock:

    async def test_set_and_read_stock(self, client, warehouse):
        product_id = uuid.uuid4()

        response = await client.put(
            f"{INVENTORY}/{product_id}/locations/{warehouse.id}",
            json={"quantity": 12, "low_stock_threshold": 3},
            headers={"X-Actor-Id": "ops@store"},
        )
        assert response.status_code == 200
        assert response.json()["quantity"] == 12

        stock = (await client.get(f"{INVENTORY}/{product_id}")).json()

        assert stock["total"] == 12
        assert stock["locations"][0]["location_name"] == "Main Warehouse"
        assert stock["locations"][0]["low_stock_threshold"] == 3
        assert stock["locations"][0]["is_low_stock"] is False

    async def test_unknown_product_has_no_stock(self, client):
        stock = (await client.get(f"{INVENTORY}/{uuid.uuid4()}")).json()

        assert stock["total"] == 0
        assert stock["locations"] == []

    async def test_unknown_location(self, client):
        response = await client.put(
            f"{INVENTORY}/{uuid.uuid4()}/locations/{uuid.uuid4()}",
            json={"quantity": 5},
        )

        assert response.status_code == 404
        assert response.json()["detail"]["error_code"] == "LOCATION_NOT_FOUND"

    async def test_negative_quantity_rejected(self, client, warehouse):
        response = await client.put(
            f"{INVENTORY}/{uuid.uuid4()}/locations/{warehouse.id}",
            json={"quantity": -1},
        )
        assert response.status_code == 422

    async def test_low_stock(self, client, warehouse, stocked_product):
        low_product = uuid.uuid4()
        await client.put(f"{INVENTORY}/{low_product}/locations/{warehouse.id}", json={"quantity": 2})

        rows = (await client.get(f"{INVENTORY}/low-stock")).json()

        assert [row["product_id"] for row in rows] == [str(low_product)]
        assert rows[0]["low_stock_threshold"] == 5


class TestAdjustments:

    async def test_sale_is_idempotent(self, client, warehouse, stocked_product):
        body = adjustment(stocked_product, warehouse.id, quantity=3)

        first = await client.post(f"{INVENTORY}/adjustments", json=body)
        second = await client.post(f"{INVENTORY}/adjustments", json=body)

        assert first.json()["applied"] is True
        assert second.json()["applied"] is False
        assert (await client.get(f"{INVENTORY}/{stocked_product}")).json()["total"] == 7

    async def test_release(self, client, warehouse, stocked_product):
        body = adjustment(stocked_product, warehouse.id, quantity=5, type_="RELEASE", reference="order-1:release")

        response = await client.post(f"{INVENTORY}/adjustments", json=body)

        assert response.json()["applied"] is True
        assert (await client.get(f"{INVENTORY}/{stocked_product}")).json()["total"] == 15

    async def test_insufficient_stock(self, client, warehouse, stocked_product):
        response = await client.post(
            f"{INVENTORY}/adjustments", json=adjustment(stocked_product, warehouse.id, quantity=11)
        )

        assert response.status_code == 422
        assert response.json()["detail"]["error_code"] == "INSUFFICIENT_STOCK"
        assert (await client.get(f"{INVENTORY}/{stocked_product}")).json()["total"] == 10

    async def test_adjustment_type_must_be_sale_or_release(self, client, warehouse, stocked_product):
        response = await client.post(
            f"{INVENTORY}/adjustments",
            json=adjustment(stocked_product, warehouse.id, type_="ADJUSTMENT"),
        )
        assert response.status_code == 422
