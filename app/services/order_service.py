# app/services/order_service.py
from sqlalchemy.orm import Session

from app.data.models.order import OrderModel
from app.domain.enums import STATUS_TRANSITIONS, NotificationType, OrderStatus
from app.domain.errors import (
    AlreadyCancelled,
    AlreadyDelivered,
    AlreadyProcessed,
    EmptyCart,
    Forbidden,
    InvalidStatusTransition,
    NotFound,
    PaymentDeclined,
)
from app.repos.order_repo import OrderRepo
from app.services.cart_service import CartService
from app.services.inventory_guard import Demand, InventoryGuard
from app.services.lock_service import LockService, product_lock_key
from app.services.notification_service import NotificationService
from app.services.order_ledger import OrderLedger
from app.services.payment_gateway import PaymentGateway, format_amount
from app.utils.logging import get_logger

logger = get_logger(__name__)


class OrderService:
    """
    Serwis odpowiedzialny za domenę zamówień.
    Składa koszyk, inventory guard, bramkę płatności, ledger i locki
    w przypadki użycia create / pay / cancel / update_status.
    """

    def __init__(
        self,
        db: Session,
        lock_service: LockService,
        gateway: PaymentGateway | None = None,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.carts = CartService(db)
        self.guard = InventoryGuard(db)
        self.ledger = OrderLedger(db)
        self.notifications = NotificationService(db)
        self.locks = lock_service
        self.gateway = gateway or PaymentGateway()

    # =====================================================
    # Commands
    # =====================================================
    def create_order(self, user_id: int, payload) -> OrderModel:
        """
        Use Case: Tworzenie zamówienia z koszyka.

        1. Snapshot koszyka (pusty -> EmptyCart)
        2. Walidacja dostępności każdej linii
        3. Zamówienie PENDING + pozycje, czyszczenie koszyka, powiadomienia
           - jedna transakcja, stock bez zmian
        """
        snapshot = self.carts.read_cart(user_id)
        if snapshot.is_empty:
            raise EmptyCart()

        self.guard.ensure_available(snapshot.demands())

        try:
            order = self.ledger.create(user_id, snapshot, payload)
            self.carts.clear_cart(snapshot.cart_id)
            for seller_id in sorted({l.seller_id for l in snapshot.lines}):
                self.notifications.notify(
                    seller_id,
                    NotificationType.NEW_ORDER,
                    "Nowe zamówienie",
                    f"Otrzymałeś nowe zamówienie {order.order_number}",
                    {"order_id": order.id, "order_number": order.order_number},
                )
            self.ledger.commit()
        except Exception:
            self.ledger.rollback()
            self.notifications.discard_pending()
            raise

        logger.info(
            f"Order {order.order_number} created for user {user_id}, "
            f"total {format_amount(order.total_amount)}"
        )
        self.notifications.dispatch_pending()
        return self.repo.get_order(order.id)

    def pay_order(self, order_id: int, user_id: int, payment) -> OrderModel:
        """
        Use Case: Płatność za zamówienie.

        Locki na zamówienie i wszystkie produkty trzymane przez
        walidacje -> bramkę -> commit, zwalniane zawsze w finally.
        """
        order = self._get_own_order(order_id, user_id)
        if order.status != OrderStatus.PENDING:
            raise AlreadyProcessed(order.order_number, order.status)

        product_ids = [i.product_id for i in order.items]
        with self.locks.hold_checkout(order.id, product_ids):
            # ktoś mógł zapłacić zanim dostaliśmy locka
            order = self.repo.get_order(order_id)
            if order.status != OrderStatus.PENDING:
                raise AlreadyProcessed(order.order_number, order.status)

            self.guard.ensure_available(
                (Demand(i.product_id, i.quantity, i.product_title) for i in order.items),
                sold_out_as_shortage=True,
            )

            result = self.gateway.process(order.total_amount, payment)
            if not result.success:
                logger.warning(f"Payment for {order.order_number} declined: {result.message}")
                raise PaymentDeclined(result.message)

            try:
                self.ledger.mark_paid(order)
                for seller_id in sorted({i.seller_id for i in order.items}):
                    self.notifications.notify(
                        seller_id,
                        NotificationType.PRODUCT_SOLD,
                        "Produkt sprzedany",
                        f"Zamówienie {order.order_number} zostało opłacone",
                        {"order_id": order.id, "transaction_id": result.transaction_id},
                    )
                self._notify_buyer(order, OrderStatus.PAID)
                self.ledger.commit()
            except Exception:
                self.ledger.rollback()
                self.notifications.discard_pending()
                # klient został obciążony, a zamówienie nie przeszło - do zwrotu ręcznego
                logger.error(
                    f"Payment {result.transaction_id} captured but order "
                    f"{order.order_number} was not marked paid"
                )
                raise

        logger.info(f"Order {order.order_number} paid, transaction {result.transaction_id}")
        self.notifications.dispatch_pending()
        return self.repo.get_order(order_id)

    def cancel_order(self, order_id: int, user_id: int) -> OrderModel:
        order = self._get_own_order(order_id, user_id)
        if order.status == OrderStatus.DELIVERED:
            raise AlreadyDelivered(order.order_number)
        if order.status == OrderStatus.CANCELLED:
            raise AlreadyCancelled(order.order_number)

        return self._cancel(order)

    def update_status(self, order_id: int, user_id: int, new_status: OrderStatus) -> OrderModel:
        """Zmiana statusu przez sprzedawcę - tylko dozwolone krawędzie."""
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFound("Zamówienie nie istnieje")
        if user_id not in {i.seller_id for i in order.items}:
            raise Forbidden("Tylko sprzedawca może zmienić status zamówienia")

        if new_status not in STATUS_TRANSITIONS[order.status]:
            raise InvalidStatusTransition(order.status, new_status)

        if new_status == OrderStatus.CANCELLED:
            return self._cancel(order)

        current = order.status
        try:
            self.ledger.transition(order, current, new_status)
            self._notify_buyer(order, new_status)
            self.ledger.commit()
        except Exception:
            self.ledger.rollback()
            self.notifications.discard_pending()
            raise

        logger.info(f"Order {order.order_number}: {current.value} -> {new_status.value}")
        self.notifications.dispatch_pending()
        return self.repo.get_order(order_id)

    def _cancel(self, order: OrderModel) -> OrderModel:
        product_ids = [i.product_id for i in order.items]
        with self.locks.hold([product_lock_key(pid) for pid in product_ids]):
            order = self.repo.get_order(order.id)
            current = order.status
            if current == OrderStatus.DELIVERED:
                raise AlreadyDelivered(order.order_number)
            if current == OrderStatus.CANCELLED:
                raise AlreadyCancelled(order.order_number)

            try:
                self.ledger.cancel(order, current)
                self._notify_buyer(order, OrderStatus.CANCELLED)
                self.ledger.commit()
            except Exception:
                self.ledger.rollback()
                self.notifications.discard_pending()
                raise

        logger.info(f"Order {order.order_number} cancelled (was {current.value})")
        self.notifications.dispatch_pending()
        return self.repo.get_order(order.id)

    def _notify_buyer(self, order: OrderModel, status: OrderStatus):
        self.notifications.notify(
            order.buyer_id,
            NotificationType.ORDER_STATUS_CHANGE,
            "Zmiana statusu zamówienia",
            f"Zamówienie {order.order_number} ma status: {status.value}",
            {"order_id": order.id, "status": status.value},
        )

    # =====================================================
    # Queries
    # =====================================================
    def _get_own_order(self, order_id: int, user_id: int) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFound("Zamówienie nie istnieje")
        if order.buyer_id != user_id:
            raise Forbidden("Brak dostępu do zamówienia")
        return order

    def get_order(self, order_id: int, user_id: int) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFound("Zamówienie nie istnieje")
        if order.buyer_id != user_id and user_id not in {i.seller_id for i in order.items}:
            raise Forbidden("Brak dostępu do zamówienia")
        return order

    def list_buyer_orders(self, user_id: int) -> list[OrderModel]:
        return self.repo.list_by_buyer(user_id)

    def list_seller_sales(self, user_id: int) -> list[OrderModel]:
        return self.repo.list_by_seller(user_id)
