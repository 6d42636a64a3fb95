#app/api/routers/carts.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.errors import http_error
from app.data.database import get_db
from app.domain.errors import DomainError
from app.domain.schemas import CartOut, ItemIn, QuantityIn
from app.services.cart_service import CartService

router = APIRouter(prefix="/carts", tags=["carts"])


def get_service(db: Session):
    return CartService(db)


@router.get("/me", response_model=CartOut)
def get_cart(user_id: int = Query(...), db: Session = Depends(get_db)):
    svc = get_service(db)
    return svc.get_cart(user_id)


@router.post("/me/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.add_product(
            user_id=user_id,
            product_id=payload.product_id,
            quantity=payload.quantity,
        )
    except (DomainError, ValueError) as e:
        raise http_error(e)


@router.patch("/me/items/{product_id}", response_model=CartOut)
def update_item(
    product_id: int,
    payload: QuantityIn,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.update_quantity(user_id, product_id, payload.quantity)
    except (DomainError, ValueError) as e:
        raise http_error(e)


@router.delete("/me/items/{product_id}", response_model=CartOut)
def remove_item(
    product_id: int,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.remove_product(user_id, product_id)
    except DomainError as e:
        raise http_error(e)


@router.delete("/me", response_model=CartOut)
def clear_cart(user_id: int = Query(...), db: Session = Depends(get_db)):
    svc = get_service(db)
    return svc.clear(user_id)
