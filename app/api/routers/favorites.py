from typing import List

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from app.api.errors import http_error
from app.data.database import get_db
from app.domain.errors import DomainError
from app.domain.schemas import FavoriteIn, FavoriteOut
from app.services.favorite_service import FavoriteService

router = APIRouter(prefix="/favorites", tags=["favorites"])


@router.post("/", response_model=FavoriteOut, status_code=201)
def add_favorite(
    payload: FavoriteIn,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
):
    try:
        return FavoriteService(db).add_favorite(user_id, payload.product_id)
    except DomainError as e:
        raise http_error(e)


@router.get("/", response_model=List[FavoriteOut])
def list_favorites(user_id: int = Query(...), db: Session = Depends(get_db)):
    return FavoriteService(db).list_favorites(user_id)


@router.delete("/{product_id}", status_code=204)
def remove_favorite(
    product_id: int,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
):
    try:
        FavoriteService(db).remove_favorite(user_id, product_id)
    except DomainError as e:
        raise http_error(e)
    return Response(status_code=204)
