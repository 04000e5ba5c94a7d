# checkout/services/wallet_service.py
from decimal import Decimal
from typing import Any, Dict, Iterator

from sqlalchemy.orm import Session

from checkout.data.database import unit_of_work
from checkout.data.models.wallet import WalletModel
from checkout.data.models.wallet_transaction import WalletTransactionModel
from checkout.domain.enums import TransactionType
from checkout.domain.errors import ConcurrencyConflict, InsufficientBalance, InvalidAmount
from checkout.repos.wallet_repo import WalletRepo
from checkout.services.user_service import UserService
from checkout.utils.money import ZERO, money, utcnow
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


def transaction_to_dict(entry: WalletTransactionModel) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "type": entry.type,
        "amount": money(entry.amount),
        "balance_before": money(entry.balance_before),
        "balance_after": money(entry.balance_after),
        "description": entry.description,
        "order_id": entry.order_id,
        "created_at": entry.created_at,
    }


class TransactionHistory:
    """
    Historia portfela: leniwa, skonczona i mozna iterowac wielokrotnie
    (kazda iteracja to nowe zapytanie, najnowsze wpisy pierwsze).
    """

    def __init__(self, repo: WalletRepo, wallet_id: int | None):
        self._repo = repo
        self._wallet_id = wallet_id

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        if self._wallet_id is None:
            return
        for entry in self._repo.iter_transactions(self._wallet_id):
            yield transaction_to_dict(entry)


class WalletService:
    """
    Portfel bonusowy + ksiega transakcji (append-only).
    Zmiana salda i wpis w ksiedze zawsze w jednej transakcji.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = WalletRepo(db)
        self.users = UserService(db)

    #query
    def get_balance(self, user_id: int) -> Dict[str, Any]:
        wallet = self.get_or_create_wallet(user_id)
        return {
            "id": wallet.id,
            "user_id": wallet.user_id,
            "balance": money(wallet.balance),
        }

    def get_transaction_history(self, user_id: int) -> TransactionHistory:
        wallet = self.repo.get_wallet_by_user(user_id)
        return TransactionHistory(self.repo, wallet.id if wallet else None)

    #commands
    def get_or_create_wallet(self, user_id: int) -> WalletModel:
        with unit_of_work(self.db):
            wallet = self.repo.get_wallet_by_user(user_id)
            if wallet:
                return wallet

            self.users.require_user(user_id)
            wallet = self.repo.create_wallet(
                WalletModel(user_id=user_id, balance=ZERO, version=1)
            )
            logger.info(f"Utworzono portfel {wallet.id} dla uzytkownika {user_id}")
            return wallet

    def credit_bonus(
        self,
        user_id: int,
        amount: Decimal,
        description: str,
        order_id: int | None = None,
    ) -> Dict[str, Any]:
        amount = self._validate_amount(amount)

        with unit_of_work(self.db):
            wallet = self.get_or_create_wallet(user_id)
            entry = self._post(wallet, TransactionType.CREDIT, amount, description, order_id)

        logger.info(f"Credited {amount} to wallet {wallet.id} (user {user_id})")
        return transaction_to_dict(entry)

    def debit_wallet(
        self,
        user_id: int,
        amount: Decimal,
        description: str,
        order_id: int | None = None,
    ) -> Dict[str, Any]:
        amount = self._validate_amount(amount)

        with unit_of_work(self.db):
            wallet = self.repo.get_wallet_by_user(user_id)
            available = money(wallet.balance) if wallet else ZERO

            if wallet is None or available < amount:
                logger.info(f"Debit rejected for user {user_id}: available {available}, requested {amount}")
                raise InsufficientBalance(available=available, requested=amount)

            entry = self._post(wallet, TransactionType.DEBIT, amount, description, order_id)

        logger.info(f"Debited {amount} from wallet {wallet.id} (user {user_id})")
        return transaction_to_dict(entry)

    @staticmethod
    def _validate_amount(amount: Decimal) -> Decimal:
        # najpierw do groszy - 0.004 to w ksiedze 0.00
        amount = money(amount)
        if amount <= 0:
            raise InvalidAmount("Kwota musi byc wieksza od zera (po zaokragleniu do groszy)")
        return amount

    def _post(
        self,
        wallet: WalletModel,
        tx_type: TransactionType,
        amount: Decimal,
        description: str,
        order_id: int | None,
    ) -> WalletTransactionModel:
        balance_before = money(wallet.balance)
        if tx_type is TransactionType.CREDIT:
            balance_after = balance_before + amount
        else:
            balance_after = balance_before - amount

        # Optimistic locking na wersji portfela
        rowcount = self.repo.update_balance(
            wallet_id=wallet.id,
            old_version=wallet.version,
            new_balance=balance_after,
        )
        if rowcount == 0:
            raise ConcurrencyConflict(
                "Konflikt wspolbieznosci - portfel zostal zmodyfikowany przez inna operacje"
            )

        return self.repo.add_transaction(
            WalletTransactionModel(
                wallet_id=wallet.id,
                type=tx_type.value,
                amount=amount,
                balance_before=balance_before,
                balance_after=balance_after,
                description=description,
                order_id=order_id,
                created_at=utcnow(),
            )
        )
