#checkout/data/models/promo_code.py
from sqlalchemy import Column, Integer, String, DateTime, Numeric, Boolean
from sqlalchemy.orm import relationship

from checkout.data.database import Base
from checkout.utils.money import utcnow


class PromoCodeModel(Base):
    __tablename__ = "promo_codes"

    id = Column(Integer, primary_key=True)
    # zapisywany wielkimi literami, wyszukiwanie case-insensitive
    code = Column(String(64), nullable=False, unique=True)
    discount_percentage = Column(Numeric(5, 2), nullable=False)
    expiration_date = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    usage_limit = Column(Integer, nullable=True)
    current_usage_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    usages = relationship(
        "PromoCodeUsageModel",
        back_populates="promo_code",
        cascade="all, delete-orphan",
    )
