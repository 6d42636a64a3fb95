from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.errors import http_error
from app.data.database import get_db
from app.domain.errors import DomainError
from app.domain.schemas import UserCreate, UserRead, UserUpdate
from app.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])

@router.post("/", response_model=UserRead, status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    service = UserService(db)
    try:
        return service.create_user(payload)
    except DomainError as e:
        raise http_error(e)

@router.get("/", response_model=List[UserRead])
def list_users(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return UserService(db).list_users(limit=limit, offset=offset)

@router.get("/by-email", response_model=UserRead)
def get_user_by_email(email: str = Query(..., min_length=3), db: Session = Depends(get_db)):
    service = UserService(db)
    try:
        return service.get_by_email(email)
    except DomainError as e:
        raise http_error(e)

@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: int, db: Session = Depends(get_db)):
    service = UserService(db)
    try:
        return service.get_user(user_id)
    except DomainError as e:
        raise http_error(e)

@router.patch("/{user_id}", response_model=UserRead)
def update_user(user_id: int, payload: UserUpdate, db: Session = Depends(get_db)):
    service = UserService(db)
    try:
        return service.update_user(user_id, payload)
    except DomainError as e:
        raise http_error(e)

@router.delete("/{user_id}", response_model=UserRead)
def deactivate_user(user_id: int, db: Session = Depends(get_db)):
    """Miękkie usunięcie (is_active=False)."""
    service = UserService(db)
    try:
        return service.deactivate_user(user_id)
    except DomainError as e:
        raise http_error(e)
