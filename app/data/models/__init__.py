#import wszystkich modeli żeby SQLAlchemy je zarejestrował w base metadata

from app.data.models.user import UserModel
from app.data.models.category import CategoryModel
from app.data.models.product import ProductModel
from app.data.models.cart import CartModel
from app.data.models.cart_item import CartItemModel
from app.data.models.order import OrderModel
from app.data.models.order_item import OrderItemModel
from app.data.models.favorite import FavoriteModel
from app.data.models.notification import NotificationModel

__all__ = [
    "UserModel",
    "CategoryModel",
    "ProductModel",
    "CartModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
    "FavoriteModel",
    "NotificationModel",
]
