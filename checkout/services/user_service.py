from sqlalchemy.orm import Session

from checkout.data.database import unit_of_work
from checkout.data.models.user import UserModel
from checkout.domain.errors import UserNotFound
from checkout.domain.schemas import UserCreate, UserRead
from checkout.repos.user_repo import UserRepo
from checkout.utils.settings import ANONYMOUS_USER_ID


class UserService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserRead:
        with unit_of_work(self.db):
            existing = self.repo.get_user(payload.id)
            if existing:
                return UserRead(id=existing.id, name=existing.name)

            created = self.repo.create_user(UserModel(id=payload.id, name=payload.name))
        return UserRead(id=created.id, name=created.name)

    def get_user(self, user_id: int) -> UserRead:
        user = self.repo.get_user(user_id)
        if not user:
            raise UserNotFound("Uzytkownik nie istnieje")
        return UserRead(id=user.id, name=user.name)

    def require_user(self, user_id: int) -> UserModel:
        user = self.repo.get_user(user_id)
        if not user:
            raise UserNotFound(f"Uzytkownik {user_id} nie istnieje")
        return user

    def get_or_create_anonymous(self) -> UserModel:
        #wspolny uzytkownik dla wszystkich niezalogowanych
        user = self.repo.get_user(ANONYMOUS_USER_ID)
        if user:
            return user
        return self.repo.create_user(UserModel(id=ANONYMOUS_USER_ID, name="Anonymous"))
