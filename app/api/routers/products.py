# app/api/routers/products.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.errors import http_error
from app.data.database import get_db
from app.domain.errors import DomainError
from app.domain.schemas import ProductCreate, ProductOut, ProductUpdate
from app.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["products"])


def get_service(db: Session):
    return ProductService(db)


@router.post("/", response_model=ProductOut, status_code=201)
def create_product(
    payload: ProductCreate,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.create_product(user_id, payload)
    except (DomainError, ValueError) as e:
        raise http_error(e)


@router.get("/", response_model=List[ProductOut])
def list_products(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None, max_length=100),
    category_id: Optional[int] = Query(None, gt=0),
    min_price: Optional[int] = Query(None, ge=0),
    max_price: Optional[int] = Query(None, ge=0),
    db: Session = Depends(get_db),
):
    """Aktywne produkty, najnowsze pierwsze."""
    return get_service(db).list_products(
        limit=limit,
        offset=offset,
        search=search,
        category_id=category_id,
        min_price=min_price,
        max_price=max_price,
    )


@router.get("/seller/{seller_id}", response_model=List[ProductOut])
def list_seller_products(seller_id: int, db: Session = Depends(get_db)):
    return get_service(db).list_seller_products(seller_id)


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.get_product(product_id)
    except DomainError as e:
        raise http_error(e)


@router.patch("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.update_product(product_id, user_id, payload)
    except (DomainError, ValueError) as e:
        raise http_error(e)


@router.delete("/{product_id}", response_model=ProductOut)
def delete_product(
    product_id: int,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
):
    """Soft delete - produkt znika z katalogu, zamówienia dalej na niego wskazują."""
    svc = get_service(db)
    try:
        return svc.deactivate_product(product_id, user_id)
    except DomainError as e:
        raise http_error(e)
