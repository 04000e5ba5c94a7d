from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from checkout.api.errors import HANDLED_ERRORS, to_http
from checkout.data.database import get_db
from checkout.services.user_service import UserService
from checkout.domain.schemas import UserCreate, UserRead

router = APIRouter(prefix="/users", tags=["users"])

@router.post("/", response_model=UserRead)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    service = UserService(db)
    try:
        return service.create_user(payload)
    except HANDLED_ERRORS as e:
        raise to_http(e)

@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: int, db: Session = Depends(get_db)):
    service = UserService(db)
    try:
        return service.get_user(user_id)
    except HANDLED_ERRORS as e:
        raise to_http(e)
