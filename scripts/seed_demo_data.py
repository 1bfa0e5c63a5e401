"""
Demo Data Setup Script
----------------------
1. Create warehouse locations
2. Stock every demo product at each location
3. Create demo orders and walk some of them through the lifecycle

Usage:
    python scripts/seed_demo_data.py [DATABASE_URL]

Defaults to the configured DATABASE_URL. Re-running against a seeded
database only adds new orders.
"""
import asyncio
import sys
import uuid
from decimal import Decimal

from sqlalchemy import select

from orderdesk.config import settings
from orderdesk.database import build_engine, build_session_factory, init_db
from orderdesk.models.inventory import WarehouseLocation
from orderdesk.schemas.order import OrderCreate
from orderdesk.services.inventory_service import InventoryService
from orderdesk.services.order_lifecycle_service import OrderLifecycleService

LOCATIONS = [
    {"name": "Delhi Warehouse", "address": "Okhla Industrial Area, New Delhi 110020"},
    {"name": "Mumbai Warehouse", "address": "Bhiwandi, Thane 421302"},
]

# Fixed ids so re-runs hit the same stock rows
PRODUCTS = [
    {"id": uuid.UUID("6f1c2d7e-0a4b-4c1e-9a57-1d2b3c4d5e01"), "sku": "WH-100", "name": "Wireless Headphones", "price": "2499.00"},
    {"id": uuid.UUID("6f1c2d7e-0a4b-4c1e-9a57-1d2b3c4d5e02"), "sku": "SW-200", "name": "Smart Watch", "price": "5999.00"},
    {"id": uuid.UUID("6f1c2d7e-0a4b-4c1e-9a57-1d2b3c4d5e03"), "sku": "CM-010", "name": "Ceramic Coffee Mug", "price": "349.00"},
]

CUSTOMERS = [
    {"name": "Rajesh Kumar", "email": "rajesh@example.com", "phone": "9876543001", "city": "Delhi", "state": "Delhi", "postal_code": "110001"},
    {"name": "Priya Sharma", "email": "priya@example.com", "phone": "9876543002", "city": "Mumbai", "state": "Maharashtra", "postal_code": "400001"},
    {"name": "Amit Patel", "email": "amit@example.com", "phone": "9876543003", "city": "Bangalore", "state": "Karnataka", "postal_code": "560001"},
    {"name": "Sunita Reddy", "email": "sunita@example.com", "phone": "9876543004", "city": "Hyderabad", "state": "Telangana", "postal_code": "500001"},
    {"name": "Neha Gupta", "email": "neha@example.com", "phone": "9876543006", "city": "Kolkata", "state": "West Bengal", "postal_code": "700001"},
]

# Actions applied to the n-th demo order, leaving one order in each stage
ORDER_JOURNEYS = [
    [],
    ["confirm"],
    ["confirm", "ship"],
    ["confirm", "ship", "mark_failed_delivery"],
    ["confirm", "ship", "mark_delivered"],
    ["confirm", "cancel"],
]

STOCK_PER_LOCATION = 25


async def setup_demo_data(database_url: str):
    engine = build_engine(database_url)
    if database_url.startswith("sqlite"):
        await init_db(bind=engine)
    session_factory = build_session_factory(engine)

    async with session_factory() as db:
        print("=" * 80)
        print("ORDERDESK DEMO DATA SETUP")
        print("=" * 80)

        # 1. Locations
        print("\n1. SETTING UP WAREHOUSE LOCATIONS...")
        inventory = InventoryService(db)
        locations = []
        for loc in LOCATIONS:
            result = await db.execute(select(WarehouseLocation).where(WarehouseLocation.name == loc["name"]))
            existing = result.scalar_one_or_none()
            if existing:
                locations.append(existing)
                print(f"   Found: {existing.name}")
            else:
                location = await inventory.create_location(loc["name"], loc["address"])
                locations.append(location)
                print(f"   Created: {location.name}")

        # 2. Stock
        print(f"\n2. STOCKING PRODUCTS ({STOCK_PER_LOCATION} units per location)...")
        for product in PRODUCTS:
            for location in locations:
                await inventory.set_stock(
                    product["id"], location.id, STOCK_PER_LOCATION,
                    created_by="seed", notes="Demo stock",
                )
            print(f"   {product['sku']}: {product['name']}")
        await db.commit()

        # 3. Orders
        print("\n3. CREATING DEMO ORDERS...")
        lifecycle = OrderLifecycleService(db)
        for i, journey in enumerate(ORDER_JOURNEYS):
            customer = CUSTOMERS[i % len(CUSTOMERS)]
            product = PRODUCTS[i % len(PRODUCTS)]
            quantity = 1 + i % 2

            order = await lifecycle.create_order(OrderCreate(
                customer_id=uuid.uuid5(uuid.NAMESPACE_URL, f"mailto:{customer['email']}"),
                customer_name=customer["name"],
                customer_email=customer["email"],
                phone=customer["phone"],
                shipping_address={
                    "line1": f"{10 + i} Main Road",
                    "city": customer["city"],
                    "state": customer["state"],
                    "postal_code": customer["postal_code"],
                    "country": "IN",
                },
                payment_method="COD" if i % 2 else "UPI",
                shipping_cost=Decimal("49.00"),
                items=[{
                    "product_id": product["id"],
                    "product_name": product["name"],
                    "product_sku": product["sku"],
                    "quantity": quantity,
                    "unit_price": Decimal(product["price"]),
                }],
            ), actor="seed")

            status = order.status
            for action in journey:
                result = await lifecycle.transition(
                    order.id,
                    action,
                    actor="seed",
                    tracking_number=f"AWB{order.order_number[-4:]}{i:02d}" if action == "ship" else None,
                    carrier="Delhivery" if action == "ship" else None,
                )
                status = result.status
                if result.delivery_status:
                    status = f"{status} / {result.delivery_status}"

            print(f"   {order.order_number}: {customer['name']:<14} {quantity} x {product['sku']:<7} -> {status}")

    await engine.dispose()

    print("\n" + "=" * 80)
    print("SETUP COMPLETE")
    print("=" * 80)
    print("""
   Try:
   - GET  /api/v1/orders
   - GET  /api/v1/deliveries/stats
   - POST /api/v1/orders/{id}/transition  {"action": "confirm"}
   - GET  /api/v1/inventory/low-stock
        """)


if __name__ == "__main__":
    asyncio.run(setup_demo_data(sys.argv[1] if len(sys.argv) > 1 else settings.DATABASE_URL))
