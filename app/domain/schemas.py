# app/domain/schemas.py
from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from app.domain.enums import (
    NotificationType,
    OrderStatus,
    PaymentMethod,
    ProductCondition,
    Role,
)


# =====================================================
# USERS
# =====================================================
class UserCreate(BaseModel):
    """Schema dla tworzenia użytkownika."""

    name: str = Field(..., min_length=1, max_length=100, description="Imię użytkownika")
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    role: Role = Role.USER


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = Field(None, min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")


class UserRead(BaseModel):
    id: int
    name: str
    email: str
    role: Role
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


# =====================================================
# CATEGORIES
# =====================================================
class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = None


class CategoryOut(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class CategoryProductCount(BaseModel):
    category_id: int
    category_name: str
    total_products: int


# =====================================================
# PRODUCTS
# =====================================================
class ProductCreate(BaseModel):
    """Schema dla tworzenia produktu. Cena w pełnych jednostkach (bez groszy)."""

    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = None
    price: int = Field(..., gt=0, description="Cena (liczba całkowita)")
    condition: ProductCondition = ProductCondition.NEW
    stock: int = Field(1, ge=0)
    category_id: Optional[int] = Field(None, gt=0)


class ProductUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = None
    price: Optional[int] = Field(None, gt=0)
    condition: Optional[ProductCondition] = None
    stock: Optional[int] = Field(None, ge=0)
    category_id: Optional[int] = Field(None, gt=0)


class ProductOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    price: int
    condition: ProductCondition
    stock: int
    is_sold: bool
    is_active: bool
    seller_id: int
    category_id: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CategoryWithProductsOut(CategoryOut):
    products: List[ProductOut] = []


# =====================================================
# CART
# =====================================================
class ItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: int = Field(..., gt=0, description="ID produktu (musi być > 0)")
    quantity: int = Field(1, gt=0, description="Ilość produktu (musi być > 0)")


class QuantityIn(BaseModel):
    quantity: int = Field(..., gt=0)


class CartItemOut(BaseModel):
    product_id: int
    title: str
    price: int
    quantity: int
    stock: int
    subtotal: int


class CartOut(BaseModel):
    cart_id: int
    user_id: int
    items: List[CartItemOut]
    total: int


# =====================================================
# ORDERS
# =====================================================
class OrderCreate(BaseModel):
    """Schema dla tworzenia zamówienia z koszyka."""

    payment_method: PaymentMethod
    shipping_address: str = Field(..., min_length=10)
    notes: Optional[str] = None


class CardPaymentIn(BaseModel):
    payment_method: Literal["card"]
    card_number: str = Field(..., min_length=1)
    cvv: Optional[str] = None
    expiry_date: Optional[str] = Field(None, description="MM/YY")


class CashPaymentIn(BaseModel):
    payment_method: Literal["cash"]


class TransferPaymentIn(BaseModel):
    payment_method: Literal["transfer"]


# unia tagowana po payment_method - numer karty tylko dla "card"
# dyskryminator ustawiany w Body(...) routera
PaymentIn = Union[CardPaymentIn, CashPaymentIn, TransferPaymentIn]


class StatusUpdate(BaseModel):
    status: OrderStatus


class OrderItemOut(BaseModel):
    id: int
    product_id: int
    seller_id: int
    quantity: int
    price: int
    product_title: str

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    """Schema dla zamówienia (response)."""

    id: int
    order_number: str
    buyer_id: int
    status: OrderStatus
    total_amount: int
    payment_method: PaymentMethod
    shipping_address: str
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemOut]

    model_config = ConfigDict(from_attributes=True)


# =====================================================
# FAVORITES / NOTIFICATIONS
# =====================================================
class FavoriteIn(BaseModel):
    product_id: int = Field(..., gt=0)


class FavoriteOut(BaseModel):
    id: int
    product_id: int
    created_at: datetime
    product: ProductOut

    model_config = ConfigDict(from_attributes=True)


class NotificationOut(BaseModel):
    id: int
    type: NotificationType
    title: str
    message: str
    is_read: bool
    metadata: Optional[dict] = Field(None, validation_alias="extra")
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UnreadCountOut(BaseModel):
    unread: int


# =====================================================
# AI
# =====================================================
class GenerateDescriptionIn(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    current_description: Optional[str] = Field(None, max_length=2000)
    category_name: Optional[str] = None
    price: Optional[int] = Field(None, gt=0)


class GenerateTitleIn(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    category_name: Optional[str] = None


class SearchTermsIn(BaseModel):
    query: str = Field(..., min_length=1, max_length=100)


class GeneratedTextOut(BaseModel):
    text: str


class SearchTermsOut(BaseModel):
    terms: List[str]


class AiStatusOut(BaseModel):
    available: bool
    model: str
