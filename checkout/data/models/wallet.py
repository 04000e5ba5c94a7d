#checkout/data/models/wallet.py
from sqlalchemy import Column, Integer, ForeignKey, DateTime, Numeric
from sqlalchemy.orm import relationship

from checkout.data.database import Base
from checkout.utils.money import utcnow


class WalletModel(Base):
    __tablename__ = "wallets"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)

    balance = Column(Numeric(12, 2), nullable=False, default=0)
    # optimistic locking saldo
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    transactions = relationship(
        "WalletTransactionModel",
        back_populates="wallet",
        cascade="all, delete-orphan",
    )
