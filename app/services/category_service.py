import re
import unicodedata

from sqlalchemy.orm import Session

from app.data.models.category import CategoryModel
from app.domain.enums import Role
from app.domain.errors import DuplicateEntry, Forbidden, NotFound
from app.domain.schemas import CategoryCreate, CategoryUpdate
from app.repos.category_repo import CategoryRepo
from app.repos.user_repo import UserRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)


def slugify(name: str) -> str:
    # "Elektronika i Gadżety" -> "elektronika-i-gadzety"
    text = name.replace("ł", "l").replace("Ł", "L")
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"\s+", "-", text.strip().lower())
    text = re.sub(r"[^a-z0-9-]", "", text)
    return re.sub(r"-{2,}", "-", text).strip("-")


class CategoryService:
    def __init__(self, db: Session):
        self.repo = CategoryRepo(db)
        self.users = UserRepo(db)

    def _require_admin(self, user_id: int, action: str):
        user = self.users.get_user(user_id)
        if not user or user.role != Role.ADMIN:
            raise Forbidden(f"Tylko administrator może {action} kategorie")

    def _slug_for(self, name: str, current_id: int | None = None) -> str:
        slug = slugify(name)
        if not slug:
            raise ValueError("Nazwa kategorii musi zawierać litery lub cyfry")
        existing = self.repo.find_by_name_or_slug(name, slug)
        if existing and existing.id != current_id:
            raise DuplicateEntry(f"Kategoria {name} już istnieje")
        return slug

    def create_category(self, user_id: int, payload: CategoryCreate) -> CategoryModel:
        self._require_admin(user_id, "tworzyć")
        slug = self._slug_for(payload.name)

        category = self.repo.create_category(
            CategoryModel(name=payload.name, slug=slug, description=payload.description)
        )
        logger.info(f"Category {category.slug} created by admin {user_id}")
        return category

    def list_categories(self, include_inactive: bool = False) -> list[CategoryModel]:
        return self.repo.list_categories(only_active=not include_inactive)

    def get_category(self, category_id: int) -> CategoryModel:
        category = self.repo.get_category(category_id)
        if not category:
            raise NotFound("Kategoria nie istnieje")
        return category

    def get_with_products(self, category_id: int) -> dict:
        category = self.get_category(category_id)
        return {
            "id": category.id,
            "name": category.name,
            "slug": category.slug,
            "description": category.description,
            "is_active": category.is_active,
            "products": self.repo.list_products(category.id),
        }

    def count_products(self, category_id: int) -> dict:
        category = self.get_category(category_id)
        return {
            "category_id": category.id,
            "category_name": category.name,
            "total_products": self.repo.count_products(category.id),
        }

    def update_category(self, category_id: int, user_id: int, payload: CategoryUpdate) -> CategoryModel:
        self._require_admin(user_id, "edytować")
        category = self.get_category(category_id)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)

        if "name" in changes:
            category.slug = self._slug_for(changes["name"], current_id=category.id)
            category.name = changes["name"]
        if "description" in changes:
            category.description = changes["description"]

        category = self.repo.save(category)
        logger.info(f"Category {category.id} updated by admin {user_id}")
        return category

    def set_active(self, category_id: int, user_id: int, active: bool) -> CategoryModel:
        """Dezaktywacja ukrywa kategorię w katalogu; produkty zostają przypięte."""
        self._require_admin(user_id, "zmieniać")
        category = self.get_category(category_id)
        category.is_active = active
        category = self.repo.save(category)
        logger.info(f"Category {category.id} {'activated' if active else 'deactivated'} by admin {user_id}")
        return category
