# app/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from app.api.errors import http_error
from app.data.database import get_db
from app.domain.errors import DomainError
from app.domain.schemas import OrderCreate, OrderOut, PaymentIn, StatusUpdate
from app.services.lock_service import LockService, get_lock_service
from app.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session, lock_service: LockService):
    return OrderService(db, lock_service)


@router.post("/", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderCreate,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    """
    Tworzy zamówienie PENDING z koszyka użytkownika.
    Stan magazynu zmienia się dopiero przy płatności.
    """
    svc = get_service(db, lock_service)
    try:
        return svc.create_order(user_id, payload)
    except (DomainError, ValueError) as e:
        raise http_error(e)


@router.get("/", response_model=List[OrderOut])
def list_my_orders(
    user_id: int = Query(...),
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    return get_service(db, lock_service).list_buyer_orders(user_id)


@router.get("/sales", response_model=List[OrderOut])
def list_my_sales(
    user_id: int = Query(...),
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    """Zamówienia zawierające produkty sprzedawcy."""
    return get_service(db, lock_service).list_seller_sales(user_id)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    svc = get_service(db, lock_service)
    try:
        return svc.get_order(order_id, user_id)
    except DomainError as e:
        raise http_error(e)


@router.post("/{order_id}/pay", response_model=OrderOut)
def pay_order(
    order_id: int,
    payment: PaymentIn = Body(..., discriminator="payment_method"),
    user_id: int = Query(...),
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    """
    Płatność: ponowna walidacja stanu pod lockiem, bramka, PAID + zdjęcie stocku.
    Odmowa karty zostawia zamówienie w PENDING.
    """
    svc = get_service(db, lock_service)
    try:
        return svc.pay_order(order_id, user_id, payment)
    except DomainError as e:
        raise http_error(e)


@router.patch("/{order_id}/cancel", response_model=OrderOut)
def cancel_order(
    order_id: int,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    svc = get_service(db, lock_service)
    try:
        return svc.cancel_order(order_id, user_id)
    except DomainError as e:
        raise http_error(e)


@router.patch("/{order_id}/status", response_model=OrderOut)
def update_status(
    order_id: int,
    payload: StatusUpdate,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    svc = get_service(db, lock_service)
    try:
        return svc.update_status(order_id, user_id, payload.status)
    except DomainError as e:
        raise http_error(e)
