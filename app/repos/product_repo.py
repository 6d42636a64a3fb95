# app/repos/product_repo.py
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.data.models.product import ProductModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_products(self, product_ids) -> dict[int, ProductModel]:
        """Świeży odczyt z bazy (populate_existing), nie z identity map sesji."""
        if not product_ids:
            return {}
        rows = self.db.execute(
            select(ProductModel)
            .where(ProductModel.id.in_(list(product_ids)))
            .execution_options(populate_existing=True)
        ).scalars()
        return {p.id: p for p in rows}

    def list_products(
        self,
        limit: int = 10,
        offset: int = 0,
        search: str | None = None,
        category_id: int | None = None,
        min_price: int | None = None,
        max_price: int | None = None,
        seller_id: int | None = None,
        only_active: bool = True,
    ) -> list[ProductModel]:
        stmt = select(ProductModel)
        if only_active:
            stmt = stmt.where(ProductModel.is_active.is_(True))
        if search:
            stmt = stmt.where(ProductModel.title.ilike(f"%{search}%"))
        if category_id is not None:
            stmt = stmt.where(ProductModel.category_id == category_id)
        if min_price is not None:
            stmt = stmt.where(ProductModel.price >= min_price)
        if max_price is not None:
            stmt = stmt.where(ProductModel.price <= max_price)
        if seller_id is not None:
            stmt = stmt.where(ProductModel.seller_id == seller_id)

        stmt = stmt.order_by(ProductModel.created_at.desc(), ProductModel.id.desc())
        return list(self.db.execute(stmt.offset(offset).limit(limit)).scalars())

    def save(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    # =====================================================
    # Atomowe zmiany stanu magazynu (bez commita - robi to wywołujący)
    # =====================================================
    def decrement_stock(self, product_id: int, quantity: int) -> int:
        """
        UPDATE products SET stock = stock - q, is_sold = (stock = q)
        WHERE id = :id AND stock >= q AND is_active AND NOT is_sold

        Zwraca rowcount - 0 oznacza, że ktoś nas wyprzedził.
        """
        stmt = (
            update(ProductModel)
            .where(
                ProductModel.id == product_id,
                ProductModel.stock >= quantity,
                ProductModel.is_active.is_(True),
                ProductModel.is_sold.is_(False),
            )
            .values(
                stock=ProductModel.stock - quantity,
                is_sold=ProductModel.stock == quantity,
            )
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    def restore_stock(self, product_id: int, quantity: int) -> int:
        stmt = (
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(stock=ProductModel.stock + quantity, is_sold=False)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount
