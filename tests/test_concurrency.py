import threading

from app.data.database import SessionLocal
from app.data.models import ProductModel
from app.domain.enums import PaymentMethod
from app.domain.errors import InsufficientStock
from app.domain.schemas import CardPaymentIn, OrderCreate
from app.services.cart_service import CartService
from app.services.order_service import OrderService
from app.services.payment_gateway import PaymentGateway


def _pending_order(lock_service, user_id, product_id, quantity):
    db = SessionLocal()
    try:
        CartService(db).add_product(user_id, product_id, quantity)
        order = OrderService(db, lock_service).create_order(
            user_id,
            OrderCreate(payment_method=PaymentMethod.CARD, shipping_address="ul. Testowa 12, Lublin"),
        )
        return order.id
    finally:
        db.close()


def test_concurrent_payments_for_last_units(lock_service, make_user, make_product, fresh):
    seller = make_user(name="Sprzedawca")
    buyers = [make_user(name="Kupujacy A"), make_user(name="Kupujacy B")]
    product = make_product(seller, stock=2)
    orders = [_pending_order(lock_service, b.id, product.id, 2) for b in buyers]

    barrier = threading.Barrier(len(buyers))
    outcomes = {}

    def pay(buyer_id, order_id):
        db = SessionLocal()
        # opóźnienie bramki poszerza okno wyścigu
        svc = OrderService(db, lock_service, gateway=PaymentGateway(min_delay_ms=50, max_delay_ms=100))
        try:
            barrier.wait()
            svc.pay_order(order_id, buyer_id, CardPaymentIn(payment_method="card", card_number="4242424242424242"))
            outcomes[order_id] = "paid"
        except Exception as e:
            outcomes[order_id] = e
        finally:
            db.close()

    threads = [threading.Thread(target=pay, args=(b.id, o)) for b, o in zip(buyers, orders)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    results = list(outcomes.values())
    assert results.count("paid") == 1
    failures = [r for r in results if r != "paid"]
    assert len(failures) == 1
    assert isinstance(failures[0], InsufficientStock)

    live = fresh(ProductModel, product.id)
    assert live.stock == 0
    assert live.is_sold is True


def test_stock_never_goes_negative_across_many_buyers(lock_service, make_user, make_product, fresh):
    seller = make_user(name="Sprzedawca")
    product = make_product(seller, stock=3)
    buyers = [make_user(name=f"Kupujacy {i}") for i in range(5)]
    orders = [_pending_order(lock_service, b.id, product.id, 1) for b in buyers]

    paid = []

    def pay(buyer_id, order_id):
        db = SessionLocal()
        try:
            OrderService(db, lock_service, gateway=PaymentGateway(0, 0)).pay_order(
                order_id, buyer_id, CardPaymentIn(payment_method="card", card_number="5555555555554444")
            )
            paid.append(order_id)
        except InsufficientStock:
            pass
        finally:
            db.close()

    threads = [threading.Thread(target=pay, args=(b.id, o)) for b, o in zip(buyers, orders)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert len(paid) == 3
    live = fresh(ProductModel, product.id)
    assert (live.stock, live.is_sold) == (0, True)
