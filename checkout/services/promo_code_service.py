# checkout/services/promo_code_service.py
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.orm import Session

from checkout.data.database import unit_of_work
from checkout.data.models.promo_code import PromoCodeModel
from checkout.data.models.promo_code_usage import PromoCodeUsageModel
from checkout.domain.errors import (
    DuplicatePromoCode,
    PromoCodeNotFound,
    PromoExpired,
    PromoInactive,
    PromoInvalid,
    PromoUnknown,
    PromoUsageLimitExceeded,
    ValidationError,
)
from checkout.domain.schemas import PromoCodeCreate, PromoCodeUpdate
from checkout.repos.promo_code_repo import PromoCodeRepo
from checkout.utils.money import as_utc, money, utcnow
from checkout.utils.pagination import page_dict
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


def promo_to_dict(promo: PromoCodeModel) -> Dict[str, Any]:
    return {
        "id": promo.id,
        "code": promo.code,
        "discount_percentage": Decimal(promo.discount_percentage),
        "expiration_date": as_utc(promo.expiration_date),
        "is_active": promo.is_active,
        "usage_limit": promo.usage_limit,
        "current_usage_count": promo.current_usage_count,
        "created_at": promo.created_at,
        "updated_at": promo.updated_at,
    }


def usage_to_dict(usage: PromoCodeUsageModel, code: str) -> Dict[str, Any]:
    return {
        "id": usage.id,
        "promo_code_id": usage.promo_code_id,
        "promo_code": code,
        "user_id": usage.user_id,
        "cart_id": usage.cart_id,
        "order_id": usage.order_id,
        "discount_amount": money(usage.discount_amount),
        "order_total": money(usage.order_total),
        "used_at": usage.used_at,
    }


def _check_percentage(value: Decimal) -> None:
    if value <= 0 or value > 100:
        raise ValidationError("Procent rabatu musi byc w przedziale (0, 100]")


class PromoCodeService:
    """
    Rejestr kodow promocyjnych.
    validate() jest tylko podpowiedzia - przy realizacji zamowienia stan
    sprawdzany jest ponownie, licznik rosnie warunkowym UPDATE.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = PromoCodeRepo(db)

    #query
    def validate(self, code: str) -> PromoCodeModel:
        promo = self.repo.get_by_code(code)

        if promo is None:
            raise PromoUnknown(code)
        self.ensure_usable(promo)
        return promo

    @staticmethod
    def ensure_usable(promo: PromoCodeModel) -> None:
        if not promo.is_active:
            raise PromoInactive(promo.code)

        expires = as_utc(promo.expiration_date)
        if expires is not None and expires < utcnow():
            raise PromoExpired(promo.code)

        if promo.usage_limit is not None and promo.current_usage_count >= promo.usage_limit:
            raise PromoUsageLimitExceeded(promo.code)

    def check(self, code: str) -> Dict[str, Any]:
        #wersja dla UI - bez wyjatku
        try:
            promo = self.validate(code)
        except PromoInvalid as e:
            return {"is_valid": False, "error_message": e.message, "promo_code": None}
        return {"is_valid": True, "error_message": None, "promo_code": promo_to_dict(promo)}

    def get_promo_code(self, promo_id: int) -> Dict[str, Any]:
        return promo_to_dict(self._require(promo_id))

    def get_promo_code_by_code(self, code: str) -> Dict[str, Any]:
        promo = self.repo.get_by_code(code)
        if promo is None:
            raise PromoCodeNotFound("Kod promocyjny nie istnieje")
        return promo_to_dict(promo)

    def list_promo_codes(self, page: int, page_size: int) -> Dict[str, Any]:
        items, total = self.repo.list_paged(page, page_size)
        return page_dict([promo_to_dict(p) for p in items], total, page, page_size)

    def list_usages(self, promo_id: int, page: int, page_size: int) -> Dict[str, Any]:
        promo = self._require(promo_id)
        items, total = self.repo.list_usages_paged(promo_id, page, page_size)
        return page_dict([usage_to_dict(u, promo.code) for u in items], total, page, page_size)

    #commands
    def create_promo_code(self, payload: PromoCodeCreate) -> Dict[str, Any]:
        _check_percentage(payload.discount_percentage)

        with unit_of_work(self.db):
            if self.repo.code_taken(payload.code):
                raise DuplicatePromoCode(f"Kod promocyjny '{payload.code}' juz istnieje")

            promo = self.repo.create(
                PromoCodeModel(
                    code=payload.code.strip().upper(),
                    discount_percentage=payload.discount_percentage,
                    expiration_date=payload.expiration_date,
                    is_active=payload.is_active,
                    usage_limit=payload.usage_limit,
                    current_usage_count=0,
                    created_at=utcnow(),
                )
            )

        logger.info(f"Utworzono kod promocyjny {promo.code} ({promo.discount_percentage}%)")
        return promo_to_dict(promo)

    def update_promo_code(self, promo_id: int, payload: PromoCodeUpdate) -> Dict[str, Any]:
        with unit_of_work(self.db):
            promo = self._require(promo_id)

            if payload.code:
                if self.repo.code_taken(payload.code, exclude_id=promo_id):
                    raise DuplicatePromoCode(f"Kod promocyjny '{payload.code}' juz istnieje")
                promo.code = payload.code.strip().upper()

            if payload.discount_percentage is not None:
                _check_percentage(payload.discount_percentage)
                promo.discount_percentage = payload.discount_percentage

            if payload.expiration_date is not None:
                promo.expiration_date = payload.expiration_date

            if payload.is_active is not None:
                promo.is_active = payload.is_active

            if payload.usage_limit is not None:
                promo.usage_limit = payload.usage_limit

            promo.updated_at = utcnow()
            self.db.flush()

        return promo_to_dict(promo)

    def delete_promo_code(self, promo_id: int) -> None:
        with unit_of_work(self.db):
            promo = self._require(promo_id)
            self.repo.delete(promo)
        logger.info(f"Usunieto kod promocyjny {promo_id}")

    def record_usage(
        self,
        promo: PromoCodeModel,
        user_id: int | None,
        discount_amount: Decimal,
        order_total: Decimal,
        cart_id: int | None = None,
        order_id: int | None = None,
    ) -> PromoCodeUsageModel:
        """
        Jedno wykorzystanie kodu: wpis do historii + licznik +1.
        Licznik rosnie tylko, jesli nadal jest ponizej limitu - przy
        rownoczesnych realizacjach na granicy limitu przejdzie dokladnie jedna.
        """
        with unit_of_work(self.db):
            rowcount = self.repo.increment_usage(promo.id)
            if rowcount == 0:
                raise PromoUsageLimitExceeded(promo.code)

            usage = self.repo.add_usage(
                PromoCodeUsageModel(
                    promo_code_id=promo.id,
                    user_id=user_id,
                    cart_id=cart_id,
                    order_id=order_id,
                    discount_amount=discount_amount,
                    order_total=order_total,
                    used_at=utcnow(),
                )
            )
            self.db.refresh(promo)

        logger.info(f"Promo {promo.code} redeemed ({promo.current_usage_count}/{promo.usage_limit or '-'})")
        return usage

    def _require(self, promo_id: int) -> PromoCodeModel:
        promo = self.repo.get_by_id(promo_id)
        if promo is None:
            raise PromoCodeNotFound("Kod promocyjny nie istnieje")
        return promo

