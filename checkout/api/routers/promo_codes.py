# checkout/api/routers/promo_codes.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from checkout.api.errors import HANDLED_ERRORS, to_http
from checkout.data.database import get_db
from checkout.domain.schemas import (
    ApplyPromoIn,
    PageOut,
    PromoCodeCreate,
    PromoCodeOut,
    PromoCodeUpdate,
    PromoCodeUsageOut,
    PromoCodeValidationOut,
)
from checkout.services.promo_code_service import PromoCodeService

router = APIRouter(prefix="/promo-codes", tags=["promo-codes"])


def get_service(db: Session = Depends(get_db)):
    return PromoCodeService(db)


@router.post("/", response_model=PromoCodeOut, status_code=201)
def create_promo_code(payload: PromoCodeCreate, svc: PromoCodeService = Depends(get_service)):
    try:
        return svc.create_promo_code(payload)
    except HANDLED_ERRORS as e:
        raise to_http(e)


@router.get("/", response_model=PageOut[PromoCodeOut])
def list_promo_codes(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    svc: PromoCodeService = Depends(get_service),
):
    return svc.list_promo_codes(page, page_size)


@router.post("/validate", response_model=PromoCodeValidationOut)
def validate_promo_code(payload: ApplyPromoIn, svc: PromoCodeService = Depends(get_service)):
    return svc.check(payload.promo_code)


@router.get("/by-code/{code}", response_model=PromoCodeOut)
def get_promo_code_by_code(code: str, svc: PromoCodeService = Depends(get_service)):
    try:
        return svc.get_promo_code_by_code(code)
    except HANDLED_ERRORS as e:
        raise to_http(e)


@router.get("/{promo_id}", response_model=PromoCodeOut)
def get_promo_code(promo_id: int, svc: PromoCodeService = Depends(get_service)):
    try:
        return svc.get_promo_code(promo_id)
    except HANDLED_ERRORS as e:
        raise to_http(e)


@router.put("/{promo_id}", response_model=PromoCodeOut)
def update_promo_code(promo_id: int, payload: PromoCodeUpdate, svc: PromoCodeService = Depends(get_service)):
    try:
        return svc.update_promo_code(promo_id, payload)
    except HANDLED_ERRORS as e:
        raise to_http(e)


@router.delete("/{promo_id}", status_code=204)
def delete_promo_code(promo_id: int, svc: PromoCodeService = Depends(get_service)):
    try:
        svc.delete_promo_code(promo_id)
    except HANDLED_ERRORS as e:
        raise to_http(e)


@router.get("/{promo_id}/usage", response_model=PageOut[PromoCodeUsageOut])
def get_usage_history(
    promo_id: int,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    svc: PromoCodeService = Depends(get_service),
):
    try:
        return svc.list_usages(promo_id, page, page_size)
    except HANDLED_ERRORS as e:
        raise to_http(e)
