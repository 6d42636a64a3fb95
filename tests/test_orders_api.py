import re

import pytest
import redis

from app.data.models import OrderModel, ProductModel
from app.main import app as fastapi_app
from app.services.lock_service import LockService, get_lock_service, product_lock_key

ADDRESS = "ul. Akademicka 1, 30-001 Krakow"


@pytest.fixture
def seller(make_user):
    return make_user(name="Sprzedawca")


@pytest.fixture
def buyer(make_user):
    return make_user(name="Kupujacy")


def add_to_cart(client, user_id, product_id, quantity=1):
    r = client.post(
        "/carts/me/items",
        params={"user_id": user_id},
        json={"product_id": product_id, "quantity": quantity},
    )
    assert r.status_code == 200, r.text
    return r.json()


def create_order(client, user_id, method="card"):
    return client.post(
        "/orders/",
        params={"user_id": user_id},
        json={"payment_method": method, "shipping_address": ADDRESS},
    )


def pay(client, order_id, user_id, card_number="4242424242424242"):
    return client.post(
        f"/orders/{order_id}/pay",
        params={"user_id": user_id},
        json={"payment_method": "card", "card_number": card_number},
    )


def set_status(client, order_id, user_id, status):
    return client.patch(
        f"/orders/{order_id}/status", params={"user_id": user_id}, json={"status": status}
    )


def order_from_cart(client, user_id, product_id, quantity):
    add_to_cart(client, user_id, product_id, quantity)
    r = create_order(client, user_id)
    assert r.status_code == 201, r.text
    return r.json()


# =====================================================
# create
# =====================================================
def test_create_order_snapshots_cart_without_touching_stock(client, buyer, seller, make_product, fresh):
    product = make_product(seller, price=10000, stock=5)
    add_to_cart(client, buyer.id, product.id, 2)

    r = create_order(client, buyer.id)

    assert r.status_code == 201, r.text
    order = r.json()
    assert order["status"] == "pending"
    assert order["total_amount"] == 20000
    assert re.fullmatch(r"ORD-\d{8}-\d{5}", order["order_number"])
    assert len(order["items"]) == 1
    item = order["items"][0]
    assert (item["product_id"], item["quantity"], item["price"]) == (product.id, 2, 10000)
    assert item["product_title"] == "Kalkulator graficzny"
    assert item["seller_id"] == seller.id

    cart = client.get("/carts/me", params={"user_id": buyer.id}).json()
    assert cart["items"] == []
    assert cart["total"] == 0

    assert fresh(ProductModel, product.id).stock == 5


def test_create_order_total_over_several_lines(client, buyer, seller, make_product):
    a = make_product(seller, title="Ksiazka", price=2500, stock=10)
    b = make_product(seller, title="Plecak", price=12000, stock=2)
    add_to_cart(client, buyer.id, a.id, 3)
    add_to_cart(client, buyer.id, b.id, 2)

    order = create_order(client, buyer.id).json()

    assert order["total_amount"] == 3 * 2500 + 2 * 12000
    assert order["total_amount"] == sum(i["price"] * i["quantity"] for i in order["items"])


def test_create_order_with_empty_cart(client, buyer):
    r = create_order(client, buyer.id)

    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "EMPTY_CART"


def test_create_order_rejects_product_sold_meanwhile(client, buyer, seller, make_product, db):
    product = make_product(seller, title="Hulajnoga", stock=1)
    add_to_cart(client, buyer.id, product.id, 1)

    product.is_sold = True
    product.stock = 0
    db.commit()

    r = create_order(client, buyer.id)

    assert r.status_code == 400
    detail = r.json()["detail"]
    assert detail["code"] == "PRODUCT_UNAVAILABLE"
    assert "Hulajnoga" in detail["message"]
    # koszyk nie został wyczyszczony
    cart = client.get("/carts/me", params={"user_id": buyer.id}).json()
    assert len(cart["items"]) == 1


def test_create_order_notifies_seller(client, buyer, seller, make_product):
    product = make_product(seller)
    order = order_from_cart(client, buyer.id, product.id, 1)

    notes = client.get("/notifications/", params={"user_id": seller.id}).json()

    assert [n["type"] for n in notes] == ["NEW_ORDER"]
    assert notes[0]["metadata"]["order_number"] == order["order_number"]


# =====================================================
# pay
# =====================================================
def test_pay_with_card_decrements_stock(client, buyer, seller, make_product, fresh):
    product = make_product(seller, price=10000, stock=5)
    order = order_from_cart(client, buyer.id, product.id, 2)

    r = pay(client, order["id"], buyer.id)

    assert r.status_code == 200, r.text
    assert r.json()["status"] == "paid"
    live = fresh(ProductModel, product.id)
    assert live.stock == 3
    assert live.is_sold is False


def test_paying_for_last_units_marks_product_sold(client, buyer, seller, make_product, fresh):
    product = make_product(seller, stock=2)
    order = order_from_cart(client, buyer.id, product.id, 2)

    assert pay(client, order["id"], buyer.id).status_code == 200

    live = fresh(ProductModel, product.id)
    assert live.stock == 0
    assert live.is_sold is True


def test_declined_card_leaves_order_pending(client, buyer, seller, make_product, fresh):
    product = make_product(seller, stock=5)
    order = order_from_cart(client, buyer.id, product.id, 2)

    r = pay(client, order["id"], buyer.id, card_number="4000000000000002")

    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "PAYMENT_DECLINED"
    assert fresh(OrderModel, order["id"]).status.value == "pending"
    assert fresh(ProductModel, product.id).stock == 5


def test_invalid_card_number(client, buyer, seller, make_product):
    product = make_product(seller)
    order = order_from_cart(client, buyer.id, product.id, 1)

    r = pay(client, order["id"], buyer.id, card_number="1234567890123")

    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "INVALID_CARD"


def test_card_payment_requires_card_number(client, buyer, seller, make_product):
    product = make_product(seller)
    order = order_from_cart(client, buyer.id, product.id, 1)

    r = client.post(
        f"/orders/{order['id']}/pay",
        params={"user_id": buyer.id},
        json={"payment_method": "card"},
    )

    assert r.status_code == 422


def test_pay_with_cash(client, buyer, seller, make_product):
    product = make_product(seller)
    order = order_from_cart(client, buyer.id, product.id, 1)

    r = client.post(
        f"/orders/{order['id']}/pay",
        params={"user_id": buyer.id},
        json={"payment_method": "cash"},
    )

    assert r.status_code == 200
    assert r.json()["status"] == "paid"


def test_second_pay_is_rejected_and_stock_moves_once(client, buyer, seller, make_product, fresh):
    product = make_product(seller, stock=5)
    order = order_from_cart(client, buyer.id, product.id, 2)

    assert pay(client, order["id"], buyer.id).status_code == 200
    r = pay(client, order["id"], buyer.id)

    assert r.status_code == 400
    detail = r.json()["detail"]
    assert detail["code"] == "ALREADY_PROCESSED"
    assert "paid" in detail["message"]
    assert fresh(ProductModel, product.id).stock == 3


def test_pay_revalidates_stock(client, buyer, make_user, seller, make_product, fresh):
    other = make_user(name="Szybszy")
    product = make_product(seller, stock=3)
    slow = order_from_cart(client, buyer.id, product.id, 2)
    fast = order_from_cart(client, other.id, product.id, 2)

    assert pay(client, fast["id"], other.id).status_code == 200
    r = pay(client, slow["id"], buyer.id)

    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "INSUFFICIENT_STOCK"
    assert fresh(OrderModel, slow["id"]).status.value == "pending"
    assert fresh(ProductModel, product.id).stock == 1


def test_pay_by_stranger_and_missing_order(client, buyer, make_user, seller, make_product):
    stranger = make_user(name="Obcy")
    product = make_product(seller)
    order = order_from_cart(client, buyer.id, product.id, 1)

    assert pay(client, order["id"], stranger.id).status_code == 403
    r = pay(client, 9999, buyer.id)
    assert r.status_code == 404
    assert r.json()["detail"]["code"] == "NOT_FOUND"


def test_pay_while_product_locked_elsewhere(client, buyer, seller, make_product, fake_redis):
    product = make_product(seller)
    order = order_from_cart(client, buyer.id, product.id, 1)

    impatient = LockService(client=fake_redis, wait_seconds=0.2)
    fastapi_app.dependency_overrides[get_lock_service] = lambda: impatient
    assert impatient.try_acquire(product_lock_key(product.id), "inny-proces")

    r = pay(client, order["id"], buyer.id)

    assert r.status_code == 409
    assert r.json()["detail"]["code"] == "RESOURCE_BUSY"


class RedisDown:
    def set(self, *args, **kwargs):
        raise redis.ConnectionError("Connection refused")

    def eval(self, *args, **kwargs):
        raise redis.ConnectionError("Connection refused")


def test_pay_with_redis_down_returns_internal_error(client, buyer, seller, make_product, fresh):
    product = make_product(seller, stock=3)
    order = order_from_cart(client, buyer.id, product.id, 1)
    fastapi_app.dependency_overrides[get_lock_service] = lambda: LockService(client=RedisDown())

    r = pay(client, order["id"], buyer.id)

    assert r.status_code == 500
    assert r.json()["detail"]["code"] == "INTERNAL_ERROR"
    assert fresh(OrderModel, order["id"]).status.value == "pending"
    assert fresh(ProductModel, product.id).stock == 3


def test_pay_notifies_seller_and_buyer(client, buyer, seller, make_product):
    product = make_product(seller)
    order = order_from_cart(client, buyer.id, product.id, 1)
    pay(client, order["id"], buyer.id)

    seller_types = {n["type"] for n in client.get("/notifications/", params={"user_id": seller.id}).json()}
    buyer_notes = client.get("/notifications/", params={"user_id": buyer.id}).json()

    assert seller_types == {"NEW_ORDER", "PRODUCT_SOLD"}
    assert [n["type"] for n in buyer_notes] == ["ORDER_STATUS_CHANGE"]
    assert buyer_notes[0]["metadata"]["status"] == "paid"


# =====================================================
# cancel
# =====================================================
def test_cancel_paid_order_restores_stock(client, buyer, seller, make_product, fresh):
    product = make_product(seller, stock=4)
    order = order_from_cart(client, buyer.id, product.id, 3)
    pay(client, order["id"], buyer.id)
    assert fresh(ProductModel, product.id).stock == 1

    r = client.patch(f"/orders/{order['id']}/cancel", params={"user_id": buyer.id})

    assert r.status_code == 200, r.text
    assert r.json()["status"] == "cancelled"
    live = fresh(ProductModel, product.id)
    assert live.stock == 4
    assert live.is_sold is False


def test_cancel_sold_out_order_clears_sold_flag(client, buyer, seller, make_product, fresh):
    product = make_product(seller, stock=3)
    order = order_from_cart(client, buyer.id, product.id, 3)
    pay(client, order["id"], buyer.id)
    assert fresh(ProductModel, product.id).is_sold is True

    client.patch(f"/orders/{order['id']}/cancel", params={"user_id": buyer.id})

    live = fresh(ProductModel, product.id)
    assert (live.stock, live.is_sold) == (3, False)


def test_cancel_pending_order_keeps_stock(client, buyer, seller, make_product, fresh):
    product = make_product(seller, stock=5)
    order = order_from_cart(client, buyer.id, product.id, 2)

    r = client.patch(f"/orders/{order['id']}/cancel", params={"user_id": buyer.id})
    again = client.patch(f"/orders/{order['id']}/cancel", params={"user_id": buyer.id})

    assert r.json()["status"] == "cancelled"
    assert fresh(ProductModel, product.id).stock == 5
    assert again.status_code == 400
    assert again.json()["detail"]["code"] == "ALREADY_CANCELLED"


def test_cancel_delivered_order(client, buyer, seller, make_product):
    product = make_product(seller)
    order = order_from_cart(client, buyer.id, product.id, 1)
    pay(client, order["id"], buyer.id)
    set_status(client, order["id"], seller.id, "shipped")
    set_status(client, order["id"], seller.id, "delivered")

    r = client.patch(f"/orders/{order['id']}/cancel", params={"user_id": buyer.id})

    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "ALREADY_DELIVERED"


def test_cancel_by_stranger(client, buyer, make_user, seller, make_product):
    product = make_product(seller)
    order = order_from_cart(client, buyer.id, product.id, 1)

    r = client.patch(f"/orders/{order['id']}/cancel", params={"user_id": seller.id})

    assert r.status_code == 403


# =====================================================
# status / snapshot / queries
# =====================================================
def test_seller_moves_order_through_fulfilment(client, buyer, seller, make_product):
    product = make_product(seller)
    order = order_from_cart(client, buyer.id, product.id, 1)

    premature = set_status(client, order["id"], seller.id, "shipped")
    assert premature.status_code == 400
    assert premature.json()["detail"]["code"] == "INVALID_STATUS_TRANSITION"

    pay(client, order["id"], buyer.id)
    assert set_status(client, order["id"], seller.id, "shipped").json()["status"] == "shipped"
    assert set_status(client, order["id"], seller.id, "delivered").json()["status"] == "delivered"

    late = set_status(client, order["id"], seller.id, "cancelled")
    assert late.status_code == 400


def test_pending_to_paid_only_through_pay(client, buyer, seller, make_product):
    product = make_product(seller)
    order = order_from_cart(client, buyer.id, product.id, 1)

    r = set_status(client, order["id"], seller.id, "paid")

    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "INVALID_STATUS_TRANSITION"


def test_only_seller_updates_status(client, buyer, seller, make_product):
    product = make_product(seller)
    order = order_from_cart(client, buyer.id, product.id, 1)

    assert set_status(client, order["id"], buyer.id, "cancelled").status_code == 403
    assert set_status(client, 9999, seller.id, "cancelled").status_code == 404


def test_seller_cancelling_shipped_order_restores_stock(client, buyer, seller, make_product, fresh):
    product = make_product(seller, stock=5)
    order = order_from_cart(client, buyer.id, product.id, 2)
    pay(client, order["id"], buyer.id)
    set_status(client, order["id"], seller.id, "shipped")

    r = set_status(client, order["id"], seller.id, "cancelled")

    assert r.json()["status"] == "cancelled"
    assert fresh(ProductModel, product.id).stock == 5


def test_order_items_are_frozen_after_product_edit(client, buyer, seller, make_product):
    product = make_product(seller, title="Stary tytul", price=10000)
    order = order_from_cart(client, buyer.id, product.id, 1)

    r = client.patch(
        f"/products/{product.id}",
        params={"user_id": seller.id},
        json={"title": "Nowy tytul", "price": 15000},
    )
    assert r.status_code == 200

    again = client.get(f"/orders/{order['id']}", params={"user_id": buyer.id}).json()
    assert again["items"][0]["product_title"] == "Stary tytul"
    assert again["items"][0]["price"] == 10000
    assert again["total_amount"] == 10000


def test_order_queries(client, buyer, make_user, seller, make_product):
    stranger = make_user(name="Obcy")
    product = make_product(seller)
    first = order_from_cart(client, buyer.id, product.id, 1)
    second = order_from_cart(client, buyer.id, product.id, 1)

    mine = client.get("/orders/", params={"user_id": buyer.id}).json()
    sales = client.get("/orders/sales", params={"user_id": seller.id}).json()

    assert [o["id"] for o in mine] == [second["id"], first["id"]]
    assert {o["id"] for o in sales} == {first["id"], second["id"]}
    assert client.get("/orders/", params={"user_id": seller.id}).json() == []

    assert client.get(f"/orders/{first['id']}", params={"user_id": seller.id}).status_code == 200
    assert client.get(f"/orders/{first['id']}", params={"user_id": stranger.id}).status_code == 403
    assert client.get("/orders/9999", params={"user_id": buyer.id}).status_code == 404
