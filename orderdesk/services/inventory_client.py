"""
HTTP client for a remote inventory service.

Speaks the same protocol OrderDesk itself exposes under /api/v1/inventory,
so two OrderDesk deployments can share one stock database. Used instead of
the local InventoryService when INVENTORY_SERVICE_URL is configured.
"""
import logging
import uuid
from typing import Dict, Optional

import httpx

from orderdesk.config import settings
from orderdesk.models.inventory import InventoryTransactionType
from orderdesk.services.inventory_service import (
    InventoryError,
    InsufficientStockError,
    InventoryUnavailableError,
    pick_location,
)

logger = logging.getLogger(__name__)


class InventoryClient:
    """Remote inventory collaborator over JSON/HTTP."""

    transactional = False

    STOCK_PATH = "/api/v1/inventory/{product_id}"
    ADJUSTMENTS_PATH = "/api/v1/inventory/adjustments"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        actor: Optional[str] = None,
    ):
        self.base_url = (base_url or settings.INVENTORY_SERVICE_URL or "").rstrip("/")
        self.timeout = timeout if timeout is not None else settings.INVENTORY_TIMEOUT_SECONDS
        self.transport = transport
        self.actor = actor

    def _client(self) -> httpx.AsyncClient:
        headers = {"Accept": "application/json"}
        if self.actor:
            headers["X-Actor-Id"] = self.actor
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
            headers=headers,
        )

    async def _request(self, method: str, path: str, json: Dict = None) -> Dict:
        async with self._client() as client:
            try:
                response = await client.request(method, path, json=json)
                response.raise_for_status()
                return response.json()

            except httpx.TimeoutException as e:
                logger.error(f"Inventory service timed out on {method} {path}: {e}")
                raise InventoryUnavailableError(
                    f"Inventory service timed out after {self.timeout}s"
                ) from e
            except httpx.HTTPStatusError as e:
                raise self._map_status_error(e) from e
            except httpx.RequestError as e:
                logger.error(f"Inventory service request failed on {method} {path}: {e}")
                raise InventoryUnavailableError(
                    f"Inventory service request failed: {str(e)}"
                ) from e

    def _map_status_error(self, e: httpx.HTTPStatusError) -> InventoryError:
        status_code = e.response.status_code
        try:
            detail = e.response.json().get("detail") or {}
        except ValueError:
            detail = {}
        if not isinstance(detail, dict):
            detail = {"message": str(detail)}
        message = detail.get("message") or f"Inventory service HTTP error: {status_code}"

        if status_code >= 500:
            logger.error(f"Inventory service error {status_code}: {e.response.text}")
            return InventoryUnavailableError(message, details={"status_code": status_code})
        if detail.get("error_code") == InsufficientStockError.error_code:
            return InsufficientStockError(message, details=detail)
        return InventoryError(message, details={"status_code": status_code, **detail})

    async def get_stock(self, product_id: uuid.UUID) -> Dict:
        return await self._request("GET", self.STOCK_PATH.format(product_id=product_id))

    async def choose_location(self, product_id: uuid.UUID, quantity: int) -> uuid.UUID:
        stock = await self.get_stock(product_id)
        location_id = pick_location(stock, quantity)
        if location_id is None:
            raise InsufficientStockError(
                f"Insufficient stock for product {product_id}: "
                f"requested {quantity}, available {stock.get('total', 0)}",
                details={"product_id": str(product_id), "requested": quantity},
            )
        return uuid.UUID(location_id)

    async def _adjust(
        self,
        txn_type: str,
        product_id: uuid.UUID,
        location_id: uuid.UUID,
        quantity: int,
        reference: str,
    ) -> bool:
        payload = {
            "product_id": str(product_id),
            "location_id": str(location_id),
            "quantity": quantity,
            "type": txn_type,
            "reference_id": reference,
        }
        result = await self._request("POST", self.ADJUSTMENTS_PATH, json=payload)
        return bool(result.get("applied", False))

    async def decrement_stock(
        self,
        product_id: uuid.UUID,
        location_id: uuid.UUID,
        quantity: int,
        reference: str,
        created_by: Optional[str] = None,
    ) -> bool:
        return await self._adjust(
            InventoryTransactionType.SALE.value, product_id, location_id, quantity, reference
        )

    async def increment_stock(
        self,
        product_id: uuid.UUID,
        location_id: uuid.UUID,
        quantity: int,
        reference: str,
        created_by: Optional[str] = None,
    ) -> bool:
        return await self._adjust(
            InventoryTransactionType.RELEASE.value, product_id, location_id, quantity, reference
        )
