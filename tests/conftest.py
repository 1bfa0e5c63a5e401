"""
Shared fixtures.

Every test that touches the database gets its own SQLite file under
tmp_path, so tests never see each other's rows and two sessions can work
against the same database (needed for the concurrency tests).
"""
import uuid

import pytest
from httpx import ASGITransport, AsyncClient

from orderdesk.database import build_engine, build_session_factory, get_db, init_db
from orderdesk.main import app
from orderdesk.services.inventory_service import InventoryService


# =============================================================================
# Database
# =============================================================================

@pytest.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'orderdesk_test.db'}")
    await init_db(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# =============================================================================
# HTTP
# =============================================================================

@pytest.fixture
async def client(session_factory):
    """App client bound to the per-test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# =============================================================================
# Seed data
# =============================================================================

@pytest.fixture
async def warehouse(session_factory):
    async with session_factory() as session:
        location = await InventoryService(session).create_location("Main Warehouse", "Okhla, New Delhi")
        await session.commit()
        return location


@pytest.fixture
async def stocked_product(session_factory, warehouse):
    """A product with 10 units at the main warehouse."""
    product_id = uuid.uuid4()
    async with session_factory() as session:
        await InventoryService(session).set_stock(product_id, warehouse.id, 10)
        await session.commit()
    return product_id
