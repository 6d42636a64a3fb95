# app/services/inventory_guard.py
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.domain.errors import (
    ClientError,
    InsufficientStock,
    ProductInactive,
    ProductNotFound,
    ProductUnavailable,
)
from app.repos.product_repo import ProductRepo


@dataclass(frozen=True)
class Demand:
    product_id: int
    quantity: int
    # tytuł ze snapshotu, używany gdy produkt już nie istnieje
    title: str | None = None


class InventoryGuard:
    """
    Sprawdza dostępność produktów względem aktualnego stanu katalogu.
    Tylko walidacja, nic nie zmienia.

    Uruchamiany dwa razy: przy tworzeniu zamówienia (linie koszyka)
    i tuż przed płatnością (pozycje zamówienia) - w międzyczasie ktoś
    inny mógł kupić ten sam towar.
    """

    def __init__(self, db: Session):
        self.products = ProductRepo(db)

    def validate(self, demands, sold_out_as_shortage: bool = False) -> list[ClientError | ProductNotFound]:
        """
        sold_out_as_shortage - przy płatności produkt wyprzedany przez inne
        zamówienie to brak stocku (InsufficientStock, dostępne 0), a nie ProductUnavailable.
        """
        demands = list(demands)
        live = self.products.get_products({d.product_id for d in demands})

        failures = []
        for demand in demands:
            product = live.get(demand.product_id)
            if product is None:
                failures.append(ProductNotFound(demand.product_id, demand.title))
            elif product.is_sold and sold_out_as_shortage:
                failures.append(
                    InsufficientStock(product.id, product.title, product.stock, demand.quantity)
                )
            elif product.is_sold:
                failures.append(ProductUnavailable(product.id, product.title))
            elif not product.is_active:
                failures.append(ProductInactive(product.id, product.title))
            elif demand.quantity > product.stock:
                failures.append(
                    InsufficientStock(product.id, product.title, product.stock, demand.quantity)
                )
        return failures

    def ensure_available(self, demands, sold_out_as_shortage: bool = False) -> None:
        """Rzuca pierwszy znaleziony problem (fail fast)."""
        failures = self.validate(demands, sold_out_as_shortage)
        if failures:
            raise failures[0]
