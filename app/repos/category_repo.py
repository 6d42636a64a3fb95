from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.data.models.category import CategoryModel
from app.data.models.product import ProductModel


class CategoryRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_category(self, category_id: int) -> CategoryModel | None:
        return self.db.get(CategoryModel, category_id)

    def find_by_name_or_slug(self, name: str, slug: str) -> CategoryModel | None:
        return self.db.execute(
            select(CategoryModel).where(
                or_(CategoryModel.name == name, CategoryModel.slug == slug)
            )
        ).scalars().first()

    def list_categories(self, only_active: bool = True) -> list[CategoryModel]:
        stmt = select(CategoryModel)
        if only_active:
            stmt = stmt.where(CategoryModel.is_active.is_(True))
        return list(self.db.execute(stmt.order_by(CategoryModel.name)).scalars())

    def list_products(self, category_id: int) -> list[ProductModel]:
        # wszystkie produkty kategorii, także nieaktywne
        return list(
            self.db.execute(
                select(ProductModel)
                .where(ProductModel.category_id == category_id)
                .order_by(ProductModel.id)
            ).scalars()
        )

    def count_products(self, category_id: int) -> int:
        return self.db.execute(
            select(func.count(ProductModel.id)).where(ProductModel.category_id == category_id)
        ).scalar_one()

    def create_category(self, category: CategoryModel) -> CategoryModel:
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        return category

    def save(self, category: CategoryModel) -> CategoryModel:
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        return category
