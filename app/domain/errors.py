# app/domain/errors.py
"""
Wyjątki domenowe.

Dziedziczą po wbudowanych typach, które routery już mapują na kody HTTP:
ValueError -> 400, PermissionError -> 403, LookupError -> 404.
Każdy ma stabilny `code` zwracany klientowi razem z komunikatem.
"""


class DomainError(Exception):
    code = "DOMAIN_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict:
        return {"code": self.code, "message": self.message}


# --- 404 ---------------------------------------------------------------

class NotFound(DomainError, LookupError):
    code = "NOT_FOUND"


class ProductNotFound(NotFound):
    code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: int, title: str | None = None):
        label = f'"{title}"' if title else f"o ID {product_id}"
        super().__init__(f"Produkt {label} nie istnieje")
        self.product_id = product_id


# --- 403 ---------------------------------------------------------------

class Forbidden(DomainError, PermissionError):
    code = "FORBIDDEN"


# --- 400 ---------------------------------------------------------------

class ClientError(DomainError, ValueError):
    code = "BAD_REQUEST"


class EmptyCart(ClientError):
    code = "EMPTY_CART"

    def __init__(self):
        super().__init__("Koszyk jest pusty")


class ProductUnavailable(ClientError):
    code = "PRODUCT_UNAVAILABLE"

    def __init__(self, product_id: int, title: str):
        super().__init__(f'Produkt "{title}" został już sprzedany')
        self.product_id = product_id


class ProductInactive(ClientError):
    code = "PRODUCT_INACTIVE"

    def __init__(self, product_id: int, title: str):
        super().__init__(f'Produkt "{title}" nie jest już dostępny')
        self.product_id = product_id


class InsufficientStock(ClientError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: int, title: str, available: int, requested: int):
        super().__init__(
            f'Niewystarczający stan dla "{title}". '
            f"Dostępne: {available}, żądane: {requested}"
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested


class AlreadyProcessed(ClientError):
    code = "ALREADY_PROCESSED"

    def __init__(self, order_number: str, status):
        status_value = getattr(status, "value", status)
        super().__init__(f"Zamówienie {order_number} zostało już przetworzone, status: {status_value}")
        self.status = status_value


class AlreadyDelivered(ClientError):
    code = "ALREADY_DELIVERED"

    def __init__(self, order_number: str):
        super().__init__(f"Nie można anulować dostarczonego zamówienia {order_number}")


class AlreadyCancelled(ClientError):
    code = "ALREADY_CANCELLED"

    def __init__(self, order_number: str):
        super().__init__(f"Zamówienie {order_number} jest już anulowane")


class InvalidStatusTransition(ClientError):
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current, requested):
        super().__init__(
            f"Niedozwolona zmiana statusu: {getattr(current, 'value', current)} -> "
            f"{getattr(requested, 'value', requested)}"
        )


class InvalidCard(ClientError):
    code = "INVALID_CARD"


class PaymentDeclined(ClientError):
    code = "PAYMENT_DECLINED"


class DuplicateEntry(ClientError):
    code = "DUPLICATE"


# --- 409 / 503 ---------------------------------------------------------

class ResourceBusy(DomainError, RuntimeError):
    code = "RESOURCE_BUSY"


class AiUnavailable(DomainError, RuntimeError):
    code = "AI_UNAVAILABLE"

    def __init__(self, message: str = "Serwis AI nie jest dostępny. Ustaw GEMINI_API_KEY"):
        super().__init__(message)
