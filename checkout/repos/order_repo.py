# checkout/repos/order_repo.py
from decimal import Decimal
from typing import List, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from checkout.data.models.order import OrderModel
from checkout.data.models.order_item import OrderItemModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def add_order_item(self, item: OrderItemModel) -> OrderItemModel:
        self.db.add(item)
        return item

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def order_number_exists(self, order_number: str) -> bool:
        return self.db.execute(
            select(OrderModel.id).where(OrderModel.order_number == order_number)
        ).first() is not None

    def list_by_user(self, user_id: int) -> List[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.user_id == user_id)
                .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            ).scalars()
        )

    def list_paged(self, page: int, page_size: int, customer_name: str | None = None) -> Tuple[List[OrderModel], int]:
        stmt = select(OrderModel)
        count_stmt = select(func.count(OrderModel.id))
        if customer_name:
            pattern = f"%{customer_name}%"
            stmt = stmt.where(OrderModel.customer_name.ilike(pattern))
            count_stmt = count_stmt.where(OrderModel.customer_name.ilike(pattern))

        total = self.db.execute(count_stmt).scalar_one()
        items = self.db.execute(
            stmt.order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        ).scalars()
        return list(items), total

    def mark_bonus_awarded(self, order_id: int, bonus_amount: Decimal) -> int:
        # warunek na bonus_awarded - drugi zapis nie przejdzie
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.bonus_awarded.is_(False))
            .values(bonus_awarded=True, bonus_amount=bonus_amount)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
