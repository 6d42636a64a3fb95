# app/repos/order_repo.py
from sqlalchemy import exists, select, update
from sqlalchemy.orm import Session, selectinload

from app.data.models.order import OrderModel
from app.data.models.order_item import OrderItemModel
from app.domain.enums import OrderStatus


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        """Dodaje zamówienie razem z pozycjami, flush bez commita."""
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .options(selectinload(OrderModel.items))
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def order_number_exists(self, order_number: str) -> bool:
        return self.db.execute(
            select(exists().where(OrderModel.order_number == order_number))
        ).scalar()

    def list_by_buyer(self, buyer_id: int) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.buyer_id == buyer_id)
                .options(selectinload(OrderModel.items))
                .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            ).scalars()
        )

    def list_by_seller(self, seller_id: int) -> list[OrderModel]:
        sold = select(OrderItemModel.order_id).where(OrderItemModel.seller_id == seller_id)
        return list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.id.in_(sold))
                .options(selectinload(OrderModel.items))
                .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            ).scalars()
        )

    def transition_status(self, order_id: int, expected: OrderStatus, new_status: OrderStatus) -> int:
        """
        Warunkowa zmiana statusu - jak optimistic locking na wersji koszyka:
        UPDATE orders SET status = :new WHERE id = :id AND status = :expected
        """
        stmt = (
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.status == expected)
            .values(status=new_status)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
