from sqlalchemy.orm import Session

from app.data.models.favorite import FavoriteModel
from app.domain.errors import DuplicateEntry, NotFound, ProductNotFound
from app.repos.favorite_repo import FavoriteRepo
from app.repos.product_repo import ProductRepo


class FavoriteService:
    def __init__(self, db: Session):
        self.repo = FavoriteRepo(db)
        self.products = ProductRepo(db)

    def add_favorite(self, user_id: int, product_id: int) -> FavoriteModel:
        if not self.products.get_product(product_id):
            raise ProductNotFound(product_id)
        if self.repo.get_favorite(user_id, product_id):
            raise DuplicateEntry("Produkt jest już w ulubionych")
        return self.repo.add(FavoriteModel(user_id=user_id, product_id=product_id))

    def remove_favorite(self, user_id: int, product_id: int) -> None:
        favorite = self.repo.get_favorite(user_id, product_id)
        if not favorite:
            raise NotFound("Produktu nie ma w ulubionych")
        self.repo.remove(favorite)

    def list_favorites(self, user_id: int) -> list[FavoriteModel]:
        return self.repo.list_by_user(user_id)
