from orderdesk.models.order import (
    Order,
    OrderItem,
    OrderStatusHistory,
    OrderStatus,
    DeliveryStatus,
    PaymentStatus,
    TransitionAction,
)
from orderdesk.models.inventory import (
    WarehouseLocation,
    ProductInventory,
    InventoryTransaction,
    InventoryTransactionType,
)
from orderdesk.models.notifications import NotificationLog
from orderdesk.models.store_settings import StoreSetting

__all__ = [
    "Order",
    "OrderItem",
    "OrderStatusHistory",
    "OrderStatus",
    "DeliveryStatus",
    "PaymentStatus",
    "TransitionAction",
    "WarehouseLocation",
    "ProductInventory",
    "InventoryTransaction",
    "InventoryTransactionType",
    "NotificationLog",
    "StoreSetting",
]
