# app/services/product_service.py
from sqlalchemy.orm import Session

from app.data.models.product import ProductModel
from app.domain.enums import Role
from app.domain.errors import Forbidden, NotFound, ProductNotFound
from app.domain.schemas import ProductCreate, ProductUpdate
from app.repos.category_repo import CategoryRepo
from app.repos.product_repo import ProductRepo
from app.repos.user_repo import UserRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)

MIN_PRICE = 1_000
MAX_PRICE = 999_999_999
MAX_STOCK = 10_000


class ProductService:
    """Katalog produktów. Usuwanie to tylko dezaktywacja - historia zamówień trzyma FK."""

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)
        self.users = UserRepo(db)
        self.categories = CategoryRepo(db)

    def _validate_price_and_stock(self, price: int | None, stock: int | None):
        if price is not None and not MIN_PRICE <= price <= MAX_PRICE:
            raise ValueError(f"Cena musi być w zakresie {MIN_PRICE} - {MAX_PRICE}")
        if stock is not None and not 0 <= stock <= MAX_STOCK:
            raise ValueError(f"Stan magazynowy musi być w zakresie 0 - {MAX_STOCK}")

    def _validate_category(self, category_id: int | None):
        if category_id is None:
            return
        category = self.categories.get_category(category_id)
        if not category:
            raise NotFound("Kategoria nie istnieje")
        if not category.is_active:
            raise ValueError(f"Kategoria {category.name} nie jest aktywna")

    def create_product(self, seller_id: int, payload: ProductCreate) -> ProductModel:
        seller = self.users.get_user(seller_id)
        if not seller:
            raise NotFound("Sprzedawca nie istnieje")
        if not seller.is_active:
            raise Forbidden("Konto sprzedawcy jest nieaktywne")

        self._validate_price_and_stock(payload.price, payload.stock)
        self._validate_category(payload.category_id)

        product = self.repo.save(
            ProductModel(
                title=payload.title.strip(),
                description=payload.description,
                price=payload.price,
                condition=payload.condition,
                stock=payload.stock,
                is_sold=False,
                is_active=True,
                seller_id=seller_id,
                category_id=payload.category_id,
            )
        )
        logger.info(f"Product {product.id} created by seller {seller_id}")
        return product

    def list_products(self, **filters) -> list[ProductModel]:
        return self.repo.list_products(**filters)

    def list_seller_products(self, seller_id: int) -> list[ProductModel]:
        return self.repo.list_products(limit=100, seller_id=seller_id, only_active=False)

    def get_product(self, product_id: int) -> ProductModel:
        product = self.repo.get_product(product_id)
        if not product:
            raise ProductNotFound(product_id)
        return product

    def update_product(self, product_id: int, user_id: int, payload: ProductUpdate) -> ProductModel:
        product = self.get_product(product_id)
        if product.seller_id != user_id:
            raise Forbidden("Możesz edytować tylko swoje produkty")

        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        self._validate_price_and_stock(changes.get("price"), changes.get("stock"))
        if "category_id" in changes:
            self._validate_category(changes["category_id"])

        for field, value in changes.items():
            setattr(product, field, value)

        # nowa dostawa na wyprzedany produkt
        if "stock" in changes and product.stock > 0:
            product.is_sold = False

        product = self.repo.save(product)
        logger.info(f"Product {product.id} updated: {sorted(changes)}")
        return product

    def deactivate_product(self, product_id: int, user_id: int) -> ProductModel:
        product = self.get_product(product_id)
        user = self.users.get_user(user_id)
        is_admin = user is not None and user.role == Role.ADMIN
        if product.seller_id != user_id and not is_admin:
            raise Forbidden("Brak uprawnień do usunięcia produktu")

        product.is_active = False
        product = self.repo.save(product)
        logger.info(f"Product {product.id} deactivated by user {user_id}")
        return product
