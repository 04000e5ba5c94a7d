# checkout/repos/wallet_repo.py
from decimal import Decimal
from typing import Iterator

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from checkout.data.models.wallet import WalletModel
from checkout.data.models.wallet_transaction import WalletTransactionModel
from checkout.utils.money import utcnow


class WalletRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_wallet_by_user(self, user_id: int) -> WalletModel | None:
        return self.db.execute(
            select(WalletModel).where(WalletModel.user_id == user_id)
        ).scalar_one_or_none()

    def create_wallet(self, wallet: WalletModel) -> WalletModel:
        self.db.add(wallet)
        self.db.flush()
        return wallet

    def update_balance(self, wallet_id: int, old_version: int, new_balance: Decimal) -> int:
        result = self.db.execute(
            update(WalletModel)
            .where(WalletModel.id == wallet_id, WalletModel.version == old_version)
            .values(
                balance=new_balance,
                version=old_version + 1,
                updated_at=utcnow(),
            )
        )
        return result.rowcount

    def add_transaction(self, entry: WalletTransactionModel) -> WalletTransactionModel:
        self.db.add(entry)
        self.db.flush()
        return entry

    def latest_transaction(self, wallet_id: int) -> WalletTransactionModel | None:
        return self.db.execute(
            select(WalletTransactionModel)
            .where(WalletTransactionModel.wallet_id == wallet_id)
            .order_by(WalletTransactionModel.created_at.desc(), WalletTransactionModel.id.desc())
            .limit(1)
        ).scalar_one_or_none()

    def iter_transactions(self, wallet_id: int, batch_size: int = 100) -> Iterator[WalletTransactionModel]:
        # najnowsze pierwsze, pobierane partiami
        stmt = (
            select(WalletTransactionModel)
            .where(WalletTransactionModel.wallet_id == wallet_id)
            .order_by(WalletTransactionModel.created_at.desc(), WalletTransactionModel.id.desc())
            .execution_options(yield_per=batch_size)
        )
        yield from self.db.execute(stmt).scalars()
