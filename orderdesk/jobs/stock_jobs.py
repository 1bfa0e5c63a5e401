"""
Inventory Jobs

Periodic low-stock scan: logs every product/location at or below its
threshold and emails a summary to STOCK_ALERT_EMAIL when configured.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from orderdesk.config import settings
from orderdesk.services.email_service import get_email_service
from orderdesk.services.inventory_service import InventoryService
from orderdesk.services.settings_service import SettingsService

logger = logging.getLogger(__name__)


def _build_alert_email(rows: List[Dict]) -> str:
    lines = "".join(
        f"<tr><td>{row['product_id']}</td><td>{row['location_name']}</td>"
        f"<td>{row['quantity']}</td><td>{row['low_stock_threshold']}</td></tr>"
        for row in rows
    )
    return (
        "<h2>Low stock alert</h2>"
        f"<p>{len(rows)} product/location combinations are at or below their threshold.</p>"
        "<table><tr><th>Product</th><th>Location</th><th>On hand</th><th>Threshold</th></tr>"
        f"{lines}</table>"
    )


async def check_low_stock(session_factory: Optional[Any] = None) -> Dict[str, Any]:
    """
    Scan inventory for low stock.

    Args:
        session_factory: async context manager factory yielding a session;
            defaults to orderdesk.database.get_db_session

    Returns:
        Summary with the number of low-stock rows and whether an alert went out
    """
    if session_factory is None:
        from orderdesk.database import get_db_session
        session_factory = get_db_session

    start_time = datetime.now(timezone.utc)
    emailed = False

    async with session_factory() as session:
        rows = await InventoryService(session).list_low_stock()

        for row in rows:
            if row["quantity"] == 0:
                logger.warning(
                    f"OUT OF STOCK: product {row['product_id']} at {row['location_name']}"
                )
            else:
                logger.warning(
                    f"LOW STOCK: product {row['product_id']} at {row['location_name']}: "
                    f"{row['quantity']} units (threshold: {row['low_stock_threshold']})"
                )

        if rows and settings.STOCK_ALERT_EMAIL:
            smtp_settings = await SettingsService(session).get_smtp_settings()
            email_service = get_email_service(smtp_settings)
            emailed = await asyncio.to_thread(
                email_service.send_email,
                settings.STOCK_ALERT_EMAIL,
                f"[{settings.APP_NAME}] Low stock alert ({len(rows)} items)",
                _build_alert_email(rows),
            )
            if not emailed:
                logger.error(f"Low stock alert email failed: {email_service.last_error}")

    duration = (datetime.now(timezone.utc) - start_time).total_seconds()
    logger.info(f"Low stock check completed in {duration:.2f}s: {len(rows)} rows")
    return {"low_stock_count": len(rows), "emailed": emailed}
