"""Translation of service exceptions into HTTP responses."""
import logging
from typing import Dict, Type

from fastapi import HTTPException, status

from orderdesk.core.exceptions import OrderDeskError
from orderdesk.services.inventory_service import (
    InventoryError,
    InsufficientStockError,
    InventoryUnavailableError,
    LocationNotFoundError,
)
from orderdesk.services.order_lifecycle_service import OrderConflictError, OrderValidationError
from orderdesk.services.order_query_service import OrderNotFoundError
from orderdesk.services.order_state_machine import (
    TransitionError,
    IllegalTransitionError,
    TerminalStateError,
)
from orderdesk.services.status_history_service import HistoryAppendError

logger = logging.getLogger(__name__)

# Most specific classes first
ERROR_STATUS: Dict[Type[Exception], int] = {
    OrderNotFoundError: status.HTTP_404_NOT_FOUND,
    LocationNotFoundError: status.HTTP_404_NOT_FOUND,
    OrderConflictError: status.HTTP_409_CONFLICT,
    TerminalStateError: 422,
    IllegalTransitionError: 422,
    InsufficientStockError: 422,
    InventoryUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
    HistoryAppendError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    OrderValidationError: status.HTTP_400_BAD_REQUEST,
    InventoryError: status.HTTP_502_BAD_GATEWAY,
    TransitionError: 422,
}


def http_error(exc: OrderDeskError) -> HTTPException:
    """Build the HTTPException for a service error."""
    status_code = status.HTTP_400_BAD_REQUEST
    for exc_type, code in ERROR_STATUS.items():
        if isinstance(exc, exc_type):
            status_code = code
            break

    if status_code >= 500:
        logger.error(f"{exc.error_code}: {exc.message}")

    detail = {"error_code": exc.error_code, "message": exc.message}
    if exc.details:
        detail["details"] = exc.details
    return HTTPException(status_code=status_code, detail=detail)
