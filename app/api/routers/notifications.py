from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.errors import http_error
from app.data.database import get_db
from app.domain.errors import DomainError
from app.domain.schemas import NotificationOut, UnreadCountOut
from app.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=List[NotificationOut])
def list_notifications(
    user_id: int = Query(...),
    unread_only: bool = Query(False),
    db: Session = Depends(get_db),
):
    return NotificationService(db).list_notifications(user_id, unread_only)


@router.get("/unread-count", response_model=UnreadCountOut)
def unread_count(user_id: int = Query(...), db: Session = Depends(get_db)):
    return {"unread": NotificationService(db).unread_count(user_id)}


@router.patch("/read-all", response_model=UnreadCountOut)
def mark_all_read(user_id: int = Query(...), db: Session = Depends(get_db)):
    svc = NotificationService(db)
    svc.mark_all_read(user_id)
    return {"unread": svc.unread_count(user_id)}


@router.patch("/{notification_id}/read", response_model=NotificationOut)
def mark_read(
    notification_id: int,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
):
    try:
        return NotificationService(db).mark_read(notification_id, user_id)
    except DomainError as e:
        raise http_error(e)
