# app/services/order_ledger.py
import random
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.data.models.order import OrderModel
from app.data.models.order_item import OrderItemModel
from app.domain.enums import STOCK_COMMITTED_STATUSES, OrderStatus
from app.domain.errors import AlreadyProcessed, InsufficientStock
from app.repos.order_repo import OrderRepo
from app.repos.product_repo import ProductRepo
from app.utils.logging import get_logger
from app.utils.settings import ORDER_NUMBER_MAX_ATTEMPTS

logger = get_logger(__name__)


def generate_order_number(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"ORD-{now:%Y%m%d}-{random.randint(1, 99999):05d}"


class OrderLedger:
    """
    Właściciel wierszy orders / order_items.

    Nie robi commita - granice transakcji ustala OrderService,
    żeby zamówienie, stock, koszyk i powiadomienia szły jednym commitem.
    """

    def __init__(self, db: Session):
        self.orders = OrderRepo(db)
        self.products = ProductRepo(db)

    def next_order_number(self) -> str:
        # unique constraint i tak pilnuje, tu tylko unikamy IntegrityError w typowym przypadku
        for _ in range(ORDER_NUMBER_MAX_ATTEMPTS):
            number = generate_order_number()
            if not self.orders.order_number_exists(number):
                return number
            logger.warning(f"Order number {number} collision, retrying")
        return generate_order_number()

    def create(self, buyer_id: int, snapshot, order_in) -> OrderModel:
        """Zamówienie PENDING + pozycje z zamrożoną ceną i tytułem. Stock bez zmian."""
        total = sum(line.unit_price * line.quantity for line in snapshot.lines)

        order = OrderModel(
            order_number=self.next_order_number(),
            buyer_id=buyer_id,
            status=OrderStatus.PENDING,
            total_amount=total,
            payment_method=order_in.payment_method,
            shipping_address=order_in.shipping_address,
            notes=order_in.notes,
            items=[
                OrderItemModel(
                    product_id=line.product_id,
                    seller_id=line.seller_id,
                    quantity=line.quantity,
                    price=line.unit_price,
                    product_title=line.title,
                )
                for line in snapshot.lines
            ],
        )
        return self.orders.add_order(order)

    def mark_paid(self, order: OrderModel) -> None:
        """
        PENDING -> PAID i zdjęcie stocku dla każdej pozycji.
        Przy 0 zmienionych wierszy robi rollback i rzuca wyjątek.
        """
        if not self.orders.transition_status(order.id, OrderStatus.PENDING, OrderStatus.PAID):
            self.orders.rollback()
            current = self.orders.get_order(order.id)
            raise AlreadyProcessed(order.order_number, current.status if current else order.status)

        for item in order.items:
            if not self.products.decrement_stock(item.product_id, item.quantity):
                self.orders.rollback()
                live = self.products.get_product(item.product_id)
                available = live.stock if live else 0
                logger.warning(
                    f"Stock race on product {item.product_id} while paying {order.order_number}"
                )
                raise InsufficientStock(item.product_id, item.product_title, available, item.quantity)

    def cancel(self, order: OrderModel, current: OrderStatus) -> None:
        """Anulowanie; jeśli stock był zdjęty (PAID / SHIPPED) wraca na magazyn."""
        if current in STOCK_COMMITTED_STATUSES:
            for item in order.items:
                self.products.restore_stock(item.product_id, item.quantity)
                logger.info(f"Restored {item.quantity} of product {item.product_id}")

        self.transition(order, current, OrderStatus.CANCELLED)

    def transition(self, order: OrderModel, current: OrderStatus, new_status: OrderStatus) -> None:
        if not self.orders.transition_status(order.id, current, new_status):
            self.orders.rollback()
            latest = self.orders.get_order(order.id)
            raise AlreadyProcessed(order.order_number, latest.status if latest else current)

    def commit(self):
        self.orders.commit()

    def rollback(self):
        self.orders.rollback()
