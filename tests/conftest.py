import os
import tempfile
import uuid

# konfiguracja musi być ustawiona przed importem app.*
_TMP_DIR = tempfile.mkdtemp(prefix="marketplace-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["PAYMENT_MIN_DELAY_MS"] = "0"
os.environ["PAYMENT_MAX_DELAY_MS"] = "0"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["GEMINI_API_KEY"] = ""
os.environ["LOCK_WAIT_SECONDS"] = "5"

import fakeredis
import pytest
from fastapi.testclient import TestClient

from app.data.database import Base, SessionLocal, engine
from app.data.models import CategoryModel, ProductModel, UserModel
from app.domain.enums import Role
from app.main import app as fastapi_app
from app.services.lock_service import LockService, get_lock_service


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_redis():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def lock_service(fake_redis):
    return LockService(client=fake_redis)


@pytest.fixture
def client(lock_service):
    fastapi_app.dependency_overrides[get_lock_service] = lambda: lock_service
    with TestClient(fastapi_app) as c:
        yield c
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(name="Jan Kowalski", role=Role.USER, is_active=True):
        user = UserModel(
            name=name,
            email=f"{uuid.uuid4().hex[:10]}@student.pl",
            role=role,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_category(db):
    def _make(name="Elektronika", is_active=True):
        category = CategoryModel(
            name=name,
            slug=name.lower().replace(" ", "-"),
            is_active=is_active,
        )
        db.add(category)
        db.commit()
        db.refresh(category)
        return category

    return _make


@pytest.fixture
def make_product(db):
    def _make(seller, title="Kalkulator graficzny", price=10000, stock=5, **kwargs):
        product = ProductModel(
            title=title,
            price=price,
            stock=stock,
            seller_id=seller.id,
            **kwargs,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def fresh(db):
    """Odczyt wiersza z pominięciem identity map (zmiany zrobione przez API)."""

    def _fresh(model, pk):
        db.expire_all()
        return db.get(model, pk)

    return _fresh
