import pytest

from app.data.models import NotificationModel
from app.domain.enums import NotificationType


@pytest.fixture
def user(make_user):
    return make_user(name="Student")


@pytest.fixture
def seller(make_user):
    return make_user(name="Sprzedawca")


def test_favorites_lifecycle(client, user, seller, make_product):
    product = make_product(seller)

    added = client.post("/favorites/", params={"user_id": user.id}, json={"product_id": product.id})
    dup = client.post("/favorites/", params={"user_id": user.id}, json={"product_id": product.id})
    listed = client.get("/favorites/", params={"user_id": user.id}).json()

    assert added.status_code == 201
    assert added.json()["product"]["title"] == "Kalkulator graficzny"
    assert dup.status_code == 400
    assert [f["product_id"] for f in listed] == [product.id]

    assert client.delete(f"/favorites/{product.id}", params={"user_id": user.id}).status_code == 204
    assert client.delete(f"/favorites/{product.id}", params={"user_id": user.id}).status_code == 404
    assert client.get("/favorites/", params={"user_id": user.id}).json() == []


def test_favorite_for_missing_product(client, user):
    r = client.post("/favorites/", params={"user_id": user.id}, json={"product_id": 999})

    assert r.status_code == 404


def _notify(db, user_id, title, is_read=False):
    n = NotificationModel(
        user_id=user_id,
        type=NotificationType.SYSTEM_ALERT,
        title=title,
        message=f"{title} - tresc",
        is_read=is_read,
        extra={"source": "test"},
    )
    db.add(n)
    db.commit()
    db.refresh(n)
    return n


def test_list_and_count_notifications(client, db, user):
    _notify(db, user.id, "Pierwsze")
    _notify(db, user.id, "Drugie", is_read=True)

    everything = client.get("/notifications/", params={"user_id": user.id}).json()
    unread = client.get("/notifications/", params={"user_id": user.id, "unread_only": True}).json()
    count = client.get("/notifications/unread-count", params={"user_id": user.id}).json()

    assert [n["title"] for n in everything] == ["Drugie", "Pierwsze"]
    assert [n["title"] for n in unread] == ["Pierwsze"]
    assert everything[0]["metadata"] == {"source": "test"}
    assert count == {"unread": 1}


def test_mark_read_only_own_notification(client, db, user, seller):
    n = _notify(db, user.id, "Moje")

    denied = client.patch(f"/notifications/{n.id}/read", params={"user_id": seller.id})
    ok = client.patch(f"/notifications/{n.id}/read", params={"user_id": user.id})
    missing = client.patch("/notifications/999/read", params={"user_id": user.id})

    assert denied.status_code == 403
    assert ok.json()["is_read"] is True
    assert missing.status_code == 404


def test_mark_all_read(client, db, user):
    for i in range(3):
        _notify(db, user.id, f"Powiadomienie {i}")

    r = client.patch("/notifications/read-all", params={"user_id": user.id})

    assert r.json() == {"unread": 0}
