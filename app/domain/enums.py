# app/domain/enums.py
import enum


class Role(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class ProductCondition(str, enum.Enum):
    NEW = "new"
    USED = "used"


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    TRANSFER = "transfer"


class NotificationType(str, enum.Enum):
    NEW_ORDER = "NEW_ORDER"
    ORDER_STATUS_CHANGE = "ORDER_STATUS_CHANGE"
    PRODUCT_SOLD = "PRODUCT_SOLD"
    SYSTEM_ALERT = "SYSTEM_ALERT"


# dozwolone przejścia dla update_status (PENDING -> PAID tylko przez pay)
STATUS_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

# statusy w których stock jest już zdjęty z magazynu
STOCK_COMMITTED_STATUSES = {OrderStatus.PAID, OrderStatus.SHIPPED}
