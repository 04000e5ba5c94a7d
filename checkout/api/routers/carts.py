#checkout/api/routers/carts.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from checkout.api.deps import get_product_client
from checkout.api.errors import HANDLED_ERRORS, to_http
from checkout.data.database import get_db
from checkout.domain.schemas import (
    ApplyPromoIn,
    CartCountOut,
    CartOut,
    ItemIn,
    ItemUpdateIn,
    QuickOrderIn,
    WhatsAppLinkOut,
    WhatsAppOrderIn,
)
from checkout.services.cart_service import CartService
from checkout.services.product_client import ProductClient

router = APIRouter(prefix="/cart", tags=["cart"])

# user_id pominiete -> koszyk anonimowy


def get_service(db: Session = Depends(get_db), product_client: ProductClient = Depends(get_product_client)):
    return CartService(db=db, product_client=product_client)


@router.get("/", response_model=CartOut)
def get_cart(
    user_id: int | None = Query(None),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.get_cart(user_id)
    except HANDLED_ERRORS as e:
        raise to_http(e)


@router.get("/count", response_model=CartCountOut)
def get_cart_count(
    user_id: int | None = Query(None),
    svc: CartService = Depends(get_service),
):
    try:
        return {"count": svc.count_items(user_id)}
    except HANDLED_ERRORS as e:
        raise to_http(e)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    user_id: int | None = Query(None),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.add_item(
            user_id=user_id,
            product_id=payload.product_id,
            quantity=payload.quantity,
        )
    except HANDLED_ERRORS as e:
        raise to_http(e)


@router.put("/items/{item_id}", response_model=CartOut)
def update_item(
    item_id: int,
    payload: ItemUpdateIn,
    user_id: int | None = Query(None),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.update_item(user_id, item_id, payload.quantity)
    except HANDLED_ERRORS as e:
        raise to_http(e)


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_item(
    item_id: int,
    user_id: int | None = Query(None),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.remove_item(user_id, item_id)
    except HANDLED_ERRORS as e:
        raise to_http(e)


@router.delete("/", status_code=204)
def clear_cart(
    user_id: int | None = Query(None),
    svc: CartService = Depends(get_service),
):
    try:
        svc.clear(user_id)
    except HANDLED_ERRORS as e:
        raise to_http(e)


@router.post("/apply-promo", response_model=CartOut)
def apply_promo(
    payload: ApplyPromoIn,
    user_id: int | None = Query(None),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.apply_promo_code(user_id, payload.promo_code)
    except HANDLED_ERRORS as e:
        raise to_http(e)


@router.delete("/promo", response_model=CartOut)
def remove_promo(
    user_id: int | None = Query(None),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.remove_promo_code(user_id)
    except HANDLED_ERRORS as e:
        raise to_http(e)


@router.post("/whatsapp-order", response_model=WhatsAppLinkOut)
def whatsapp_order(
    payload: WhatsAppOrderIn,
    user_id: int | None = Query(None),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.whatsapp_order(
            user_id,
            phone_number=payload.phone_number,
            customer_name=payload.customer_name,
            customer_phone=payload.customer_phone,
        )
    except HANDLED_ERRORS as e:
        raise to_http(e)


@router.post("/quick-order", response_model=WhatsAppLinkOut)
def quick_order(
    payload: QuickOrderIn,
    svc: CartService = Depends(get_service),
):
    try:
        return svc.quick_whatsapp_order(
            product_id=payload.product_id,
            quantity=payload.quantity,
            phone_number=payload.phone_number,
            customer_name=payload.customer_name,
            customer_phone=payload.customer_phone,
        )
    except HANDLED_ERRORS as e:
        raise to_http(e)
