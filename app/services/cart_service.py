from dataclasses import dataclass
from typing import Any, Dict

from sqlalchemy.orm import Session

from app.data.models.cart import CartModel
from app.data.models.cart_item import CartItemModel
from app.domain.errors import NotFound
from app.repos.cart_repo import CartRepo
from app.services.inventory_guard import Demand, InventoryGuard
from app.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CartLineSnapshot:
    product_id: int
    title: str
    unit_price: int
    quantity: int
    seller_id: int


@dataclass(frozen=True)
class CartSnapshot:
    cart_id: int | None
    lines: tuple[CartLineSnapshot, ...]

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def demands(self) -> list[Demand]:
        return [Demand(l.product_id, l.quantity, l.title) for l in self.lines]


class CartService:
    """
    Prosta implementacja cqrs dla domeny cart
    commands (add, update, remove, clear) modyfikują stan
    query (get, read_cart) tylko odczyt

    Cena nie jest trzymana w koszyku - zawsze czytana z produktu.
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.guard = InventoryGuard(db)

    #query - odczyt
    def get_or_create_cart(self, user_id: int) -> CartModel:
        cart = self.repo.get_cart_by_user(user_id)
        if cart:
            return cart

        #koszyk tworzony leniwie przy pierwszym dostępie
        cart = self.repo.create_cart(CartModel(user_id=user_id))
        logger.info(f"Utworzono koszyk {cart.id} dla użytkownika {user_id}")
        return cart

    def get_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self.get_or_create_cart(user_id)
        items = self.repo.get_cart_items(cart.id)

        lines = [
            {
                "product_id": i.product_id,
                "title": i.product.title,
                "price": i.product.price,
                "quantity": i.quantity,
                "stock": i.product.stock,
                "subtotal": i.product.price * i.quantity,
            }
            for i in items
        ]
        #dict przekształcany w jsona
        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "items": lines,
            "total": sum(l["subtotal"] for l in lines),
        }

    def read_cart(self, user_id: int) -> CartSnapshot:
        """Niezmienny snapshot linii koszyka z aktualnymi cenami produktów."""
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            return CartSnapshot(cart_id=None, lines=())

        items = self.repo.get_cart_items(cart.id)
        return CartSnapshot(
            cart_id=cart.id,
            lines=tuple(
                CartLineSnapshot(
                    product_id=i.product_id,
                    title=i.product.title,
                    unit_price=i.product.price,
                    quantity=i.quantity,
                    seller_id=i.product.seller_id,
                )
                for i in items
            ),
        )

    #commands
    def add_product(self, user_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        if quantity <= 0:
            raise ValueError("Ilość musi być większa niż 0")

        cart = self.get_or_create_cart(user_id)
        existing_item = self.repo.get_cart_item(cart.id, product_id)
        new_quantity = quantity + (existing_item.quantity if existing_item else 0)

        # produkt istnieje, nie sprzedany, aktywny i stan >= łączna ilość w koszyku
        self.guard.ensure_available([Demand(product_id, new_quantity)])

        if existing_item:
            logger.info(
                f"Produkt {product_id} już jest w koszyku, zwiększam ilość "
                f"z {existing_item.quantity} do {new_quantity}"
            )
            existing_item.quantity = new_quantity
        else:
            logger.info(f"Dodaje nowy produkt {product_id} do koszyka {cart.id}")
            self.repo.add_cart_item(
                CartItemModel(cart_id=cart.id, product_id=product_id, quantity=quantity)
            )

        self.repo.commit()
        return self.get_cart(user_id)

    def update_quantity(self, user_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        if quantity <= 0:
            raise ValueError("Ilość musi być większa niż 0")

        cart = self.get_or_create_cart(user_id)
        item = self.repo.get_cart_item(cart.id, product_id)
        if not item:
            raise NotFound(f"Produktu {product_id} nie ma w koszyku")

        self.guard.ensure_available([Demand(product_id, quantity, item.product.title)])

        item.quantity = quantity
        self.repo.commit()
        logger.info(f"Koszyk {cart.id}: produkt {product_id} ilość = {quantity}")
        return self.get_cart(user_id)

    def remove_product(self, user_id: int, product_id: int) -> Dict[str, Any]:
        cart = self.get_or_create_cart(user_id)
        item = self.repo.get_cart_item(cart.id, product_id)
        if not item:
            raise NotFound(f"Produktu {product_id} nie ma w koszyku")

        self.repo.delete_cart_item(item)
        self.repo.commit()
        logger.info(f"Usunięto produkt {product_id} z koszyka {cart.id}")
        return self.get_cart(user_id)

    def clear(self, user_id: int) -> Dict[str, Any]:
        cart = self.get_or_create_cart(user_id)
        self.repo.clear_cart(cart.id)
        self.repo.commit()
        return self.get_cart(user_id)

    def clear_cart(self, cart_id: int) -> None:
        """Usuwa wszystkie linie bez commita - część transakcji checkoutu."""
        self.repo.clear_cart(cart_id)
