from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from app.data.database import Base


class OrderItemModel(Base):
    """Snapshot linii koszyka z chwili utworzenia zamówienia.

    Cena i tytuł są zamrożone - nigdy nie czytamy ich ponownie z produktu.
    """

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    seller_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    quantity = Column(Integer, nullable=False)
    price = Column(Integer, nullable=False)
    product_title = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    order = relationship("OrderModel", back_populates="items")
