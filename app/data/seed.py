# app/data/seed.py
from app.data.database import Base, SessionLocal, engine
from app.data.models import CategoryModel, ProductModel, UserModel
from app.domain.enums import ProductCondition, Role
from app.services.category_service import slugify
from app.utils.logging import get_logger

logger = get_logger(__name__)

USERS = [
    {"name": "Administrator", "email": "admin@marketplace.pl", "role": Role.ADMIN},
    {"name": "Jan Kowalski", "email": "jan.kowalski@student.pl", "role": Role.USER},
    {"name": "Anna Nowak", "email": "anna.nowak@student.pl", "role": Role.USER},
]

CATEGORIES = [
    ("Elektronika", "Laptopy, telefony, tablety i akcesoria"),
    ("Książki i materiały", "Podręczniki, notatki, skrypty"),
    ("Sport i rekreacja", "Rowery, sprzęt sportowy, odzież treningowa"),
    ("Dom i meble", "Meble, dekoracje, sprzęt AGD do akademika"),
]

# (tytuł, cena, stan, liczba sztuk, kategoria)
PRODUCTS = [
    ("Laptop Lenovo ThinkPad T480", 1_800_000, ProductCondition.USED, 1, "Elektronika"),
    ("Słuchawki bezprzewodowe", 250_000, ProductCondition.NEW, 3, "Elektronika"),
    ("Kalkulator graficzny TI-84", 300_000, ProductCondition.USED, 2, "Elektronika"),
    ("Analiza matematyczna 1", 45_000, ProductCondition.USED, 4, "Książki i materiały"),
    ("Rower miejski 28 cali", 650_000, ProductCondition.USED, 1, "Sport i rekreacja"),
    ("Lampka biurkowa LED", 60_000, ProductCondition.NEW, 5, "Dom i meble"),
]


def seed() -> bool:
    """Wypełnia pustą bazę danymi demo. Zwraca False, gdy dane już są."""
    db = SessionLocal()
    try:
        # bez nadpisywania: tylko na pustej bazie
        if db.query(UserModel).first():
            return False

        users = [UserModel(**data) for data in USERS]
        db.add_all(users)

        categories = {
            name: CategoryModel(name=name, slug=slugify(name), description=description)
            for name, description in CATEGORIES
        }
        db.add_all(categories.values())
        db.flush()

        # produkty wystawiają zwykli użytkownicy na zmianę
        sellers = [u for u in users if u.role == Role.USER]
        for i, (title, price, condition, stock, category) in enumerate(PRODUCTS):
            db.add(
                ProductModel(
                    title=title,
                    price=price,
                    condition=condition,
                    stock=stock,
                    seller_id=sellers[i % len(sellers)].id,
                    category_id=categories[category].id,
                )
            )
        db.commit()
        logger.info(f"Seeded {len(users)} users, {len(categories)} categories, {len(PRODUCTS)} products")
        return True
    finally:
        db.close()


if __name__ == "__main__":
    Base.metadata.create_all(bind=engine)
    seed()
