# app/data/models/product.py
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from app.data.database import Base
from app.domain.enums import ProductCondition


def _now():
    return datetime.now(timezone.utc)


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)

    # cena w pełnych jednostkach waluty, bez groszy
    price = Column(Integer, nullable=False)
    condition = Column(
        Enum(ProductCondition, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ProductCondition.NEW,
    )
    stock = Column(Integer, nullable=False, default=1)
    is_sold = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    seller_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    category = relationship("CategoryModel")

    __table_args__ = (CheckConstraint("stock >= 0", name="ck_product_stock_non_negative"),)
