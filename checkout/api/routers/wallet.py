from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from checkout.api.errors import HANDLED_ERRORS, to_http
from checkout.data.database import get_db
from checkout.domain.schemas import WalletOut, WalletTransactionOut
from checkout.services.wallet_service import WalletService

router = APIRouter(prefix="/wallet", tags=["wallet"])


@router.get("/", response_model=WalletOut)
def get_wallet(user_id: int = Query(...), db: Session = Depends(get_db)):
    try:
        return WalletService(db).get_balance(user_id)
    except HANDLED_ERRORS as e:
        raise to_http(e)


@router.get("/transactions", response_model=List[WalletTransactionOut])
def get_transactions(user_id: int = Query(...), db: Session = Depends(get_db)):
    return list(WalletService(db).get_transaction_history(user_id))
