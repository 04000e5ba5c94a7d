from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, Boolean, Float, Text
from sqlalchemy.orm import relationship

from checkout.data.database import Base
from checkout.domain.enums import OrderStatus
from checkout.utils.money import utcnow


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_number = Column(String(32), nullable=False, unique=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # snapshot danych klienta i dostawy
    customer_name = Column(String, nullable=False)
    customer_phone = Column(String, nullable=False)
    delivery_address = Column(String, nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    delivery_notes = Column(Text, nullable=True)

    sub_total = Column(Numeric(10, 2), nullable=False)
    promo_code_discount = Column(Numeric(10, 2), nullable=True)
    wallet_discount = Column(Numeric(10, 2), nullable=True)
    total_amount = Column(Numeric(10, 2), nullable=False)

    status = Column(String, nullable=False, default=OrderStatus.PENDING.value)  # PENDING, CONFIRMED, DELIVERED, CANCELLED

    bonus_awarded = Column(Boolean, nullable=False, default=False)
    bonus_amount = Column(Numeric(10, 2), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
    )
