"""InventoryClient talking to this application's own inventory endpoints."""
import pytest
from httpx import ASGITransport

from orderdesk.main import app
from orderdesk.services.inventory_client import InventoryClient
from orderdesk.services.inventory_service import InsufficientStockError

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


@pytest.fixture
def remote(client):
    # `client` installs the per-test database override on the app
    return InventoryClient(base_url="http://test", transport=ASGITransport(app=app), actor="remote-shop")


async def test_choose_and_decrement(remote, warehouse, stocked_product):
    location_id = await remote.choose_location(stocked_product, 4)
    assert location_id == warehouse.id

    assert await remote.decrement_stock(stocked_product, location_id, 4, "remote-order:sale") is True
    assert await remote.decrement_stock(stocked_product, location_id, 4, "remote-order:sale") is False

    stock = await remote.get_stock(stocked_product)
    assert stock["total"] == 6


async def test_release(remote, warehouse, stocked_product):
    assert await remote.increment_stock(stocked_product, warehouse.id, 2, "remote-order:release") is True

    assert (await remote.get_stock(stocked_product))["total"] == 12


async def test_insufficient_stock_maps_back(remote, warehouse, stocked_product):
    with pytest.raises(InsufficientStockError):
        await remote.decrement_stock(stocked_product, warehouse.id, 50, "remote-order:sale")
