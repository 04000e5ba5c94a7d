# checkout/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from checkout.api.deps import (
    get_bonus_config,
    get_lock_service,
    get_notification_service,
    get_product_client,
)
from checkout.api.errors import HANDLED_ERRORS, to_http
from checkout.data.database import get_db
from checkout.domain.schemas import (
    OrderCreate,
    OrderListItemOut,
    OrderOut,
    OrderStatusUpdate,
    PageOut,
)
from checkout.services.lock_service import LockService
from checkout.services.notification_service import NotificationService
from checkout.services.order_service import OrderService
from checkout.services.product_client import ProductClient
from checkout.utils.settings import BonusSettings

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
    lock_service: LockService = Depends(get_lock_service),
    notification_service: NotificationService = Depends(get_notification_service),
    bonus_settings: BonusSettings = Depends(get_bonus_config),
):
    return OrderService(
        db,
        product_client=product_client,
        lock_service=lock_service,
        notification_service=notification_service,
        bonus_settings=bonus_settings,
    )


@router.post("/", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderCreate,
    user_id: int = Query(...),
    svc: OrderService = Depends(get_service),
):
    """
    Tworzy zamowienie z koszyka uzytkownika.
    Wysyla powiadomienie asynchronicznie.
    """
    try:
        return svc.create_order_from_cart(user_id, payload)
    except HANDLED_ERRORS as e:
        raise to_http(e)


@router.get("/", response_model=List[OrderListItemOut])
def list_user_orders(
    user_id: int = Query(...),
    svc: OrderService = Depends(get_service),
):
    return svc.list_user_orders(user_id)


@router.get("/admin/all", response_model=PageOut[OrderListItemOut])
def list_all_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    customer_name: str | None = Query(None),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.list_orders(page, page_size, customer_name)
    except HANDLED_ERRORS as e:
        raise to_http(e)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    user_id: int = Query(...),
    svc: OrderService = Depends(get_service),
):
    """
    Pobiera szczegoly zamowienia.
    """
    try:
        return svc.get_order(order_id, user_id)
    except HANDLED_ERRORS as e:
        raise to_http(e)


@router.put("/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.update_status(order_id, payload.status)
    except HANDLED_ERRORS as e:
        raise to_http(e)
