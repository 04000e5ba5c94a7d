# checkout/repos/promo_code_repo.py
from typing import List, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from checkout.data.models.promo_code import PromoCodeModel
from checkout.data.models.promo_code_usage import PromoCodeUsageModel
from checkout.utils.money import utcnow


class PromoCodeRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, promo_id: int) -> PromoCodeModel | None:
        return self.db.get(PromoCodeModel, promo_id)

    def get_by_code(self, code: str) -> PromoCodeModel | None:
        return self.db.execute(
            select(PromoCodeModel).where(func.lower(PromoCodeModel.code) == code.strip().lower())
        ).scalar_one_or_none()

    def code_taken(self, code: str, exclude_id: int | None = None) -> bool:
        stmt = select(PromoCodeModel.id).where(func.lower(PromoCodeModel.code) == code.strip().lower())
        if exclude_id is not None:
            stmt = stmt.where(PromoCodeModel.id != exclude_id)
        return self.db.execute(stmt).first() is not None

    def create(self, promo: PromoCodeModel) -> PromoCodeModel:
        self.db.add(promo)
        self.db.flush()
        return promo

    def delete(self, promo: PromoCodeModel) -> None:
        self.db.delete(promo)
        self.db.flush()

    def list_paged(self, page: int, page_size: int) -> Tuple[List[PromoCodeModel], int]:
        total = self.db.execute(select(func.count(PromoCodeModel.id))).scalar_one()
        items = self.db.execute(
            select(PromoCodeModel)
            .order_by(PromoCodeModel.created_at.desc(), PromoCodeModel.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        ).scalars()
        return list(items), total

    def increment_usage(self, promo_id: int) -> int:
        # atomowo: licznik rosnie tylko gdy ponizej limitu
        result = self.db.execute(
            update(PromoCodeModel)
            .where(
                PromoCodeModel.id == promo_id,
                or_(
                    PromoCodeModel.usage_limit.is_(None),
                    PromoCodeModel.current_usage_count < PromoCodeModel.usage_limit,
                ),
            )
            .values(
                current_usage_count=PromoCodeModel.current_usage_count + 1,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def add_usage(self, usage: PromoCodeUsageModel) -> PromoCodeUsageModel:
        self.db.add(usage)
        self.db.flush()
        return usage

    def list_usages_paged(self, promo_id: int, page: int, page_size: int) -> Tuple[List[PromoCodeUsageModel], int]:
        total = self.db.execute(
            select(func.count(PromoCodeUsageModel.id)).where(PromoCodeUsageModel.promo_code_id == promo_id)
        ).scalar_one()
        items = self.db.execute(
            select(PromoCodeUsageModel)
            .where(PromoCodeUsageModel.promo_code_id == promo_id)
            .order_by(PromoCodeUsageModel.used_at.desc(), PromoCodeUsageModel.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        ).scalars()
        return list(items), total
