from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.errors import http_error
from app.data.database import get_db
from app.domain.errors import DomainError
from app.domain.schemas import (
    CategoryCreate,
    CategoryOut,
    CategoryProductCount,
    CategoryUpdate,
    CategoryWithProductsOut,
)
from app.services.category_service import CategoryService

router = APIRouter(prefix="/categories", tags=["categories"])


@router.post("/", response_model=CategoryOut, status_code=201)
def create_category(
    payload: CategoryCreate,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
):
    """Tylko administrator."""
    service = CategoryService(db)
    try:
        return service.create_category(user_id, payload)
    except (DomainError, ValueError) as e:
        raise http_error(e)


@router.get("/", response_model=List[CategoryOut])
def list_categories(include_inactive: bool = False, db: Session = Depends(get_db)):
    return CategoryService(db).list_categories(include_inactive=include_inactive)


@router.get("/{category_id}", response_model=CategoryOut)
def get_category(category_id: int, db: Session = Depends(get_db)):
    service = CategoryService(db)
    try:
        return service.get_category(category_id)
    except DomainError as e:
        raise http_error(e)


@router.get("/{category_id}/products", response_model=CategoryWithProductsOut)
def get_category_with_products(category_id: int, db: Session = Depends(get_db)):
    service = CategoryService(db)
    try:
        return service.get_with_products(category_id)
    except DomainError as e:
        raise http_error(e)


@router.get("/{category_id}/count", response_model=CategoryProductCount)
def count_category_products(category_id: int, db: Session = Depends(get_db)):
    service = CategoryService(db)
    try:
        return service.count_products(category_id)
    except DomainError as e:
        raise http_error(e)


@router.patch("/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
):
    service = CategoryService(db)
    try:
        return service.update_category(category_id, user_id, payload)
    except (DomainError, ValueError) as e:
        raise http_error(e)


@router.patch("/{category_id}/activate", response_model=CategoryOut)
def activate_category(category_id: int, user_id: int = Query(...), db: Session = Depends(get_db)):
    service = CategoryService(db)
    try:
        return service.set_active(category_id, user_id, True)
    except DomainError as e:
        raise http_error(e)


@router.delete("/{category_id}", response_model=CategoryOut)
def deactivate_category(category_id: int, user_id: int = Query(...), db: Session = Depends(get_db)):
    """Miękkie usunięcie, produkty kategorii zostają."""
    service = CategoryService(db)
    try:
        return service.set_active(category_id, user_id, False)
    except DomainError as e:
        raise http_error(e)
