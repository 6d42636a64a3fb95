from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.data.database import Base
from app.domain.enums import OrderStatus, PaymentMethod


def _now():
    return datetime.now(timezone.utc)


def _enum(enum_cls, name):
    return Enum(enum_cls, name=name, values_callable=lambda e: [m.value for m in e])


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    # ORD-YYYYMMDD-NNNNN
    order_number = Column(String(20), nullable=False, unique=True)
    buyer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    status = Column(_enum(OrderStatus, "order_status"), nullable=False, default=OrderStatus.PENDING)
    total_amount = Column(Integer, nullable=False)
    payment_method = Column(_enum(PaymentMethod, "payment_method"), nullable=False)
    shipping_address = Column(Text, nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
    )
