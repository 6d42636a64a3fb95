from sqlalchemy.orm import Session

from app.data.models.user import UserModel
from app.domain.errors import DuplicateEntry, NotFound
from app.domain.schemas import UserCreate, UserUpdate
from app.repos.user_repo import UserRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserModel:
        email = normalize_email(payload.email)
        if self.repo.get_by_email(email):
            raise DuplicateEntry(f"Użytkownik z emailem {email} już istnieje")

        created = self.repo.create_user(
            UserModel(name=payload.name, email=email, role=payload.role)
        )
        logger.info(f"User {created.id} created ({created.role.value})")
        return created

    def list_users(self, limit: int = 10, offset: int = 0) -> list[UserModel]:
        return self.repo.list_users(limit=limit, offset=offset)

    def get_user(self, user_id: int) -> UserModel:
        user = self.repo.get_user(user_id)
        if not user:
            raise NotFound("Użytkownik nie istnieje")
        return user

    def get_by_email(self, email: str) -> UserModel:
        user = self.repo.get_by_email(normalize_email(email))
        if not user:
            raise NotFound(f"Użytkownik z emailem {email} nie istnieje")
        return user

    def update_user(self, user_id: int, payload: UserUpdate) -> UserModel:
        user = self.get_user(user_id)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)

        if "email" in changes:
            changes["email"] = normalize_email(changes["email"])
            owner = self.repo.get_by_email(changes["email"])
            if owner and owner.id != user.id:
                raise DuplicateEntry(f"Użytkownik z emailem {changes['email']} już istnieje")

        for field, value in changes.items():
            setattr(user, field, value)
        return self.repo.save(user)

    def deactivate_user(self, user_id: int) -> UserModel:
        """Miękkie usunięcie: konto zostaje, ale nie może już kupować ani sprzedawać."""
        user = self.get_user(user_id)
        user.is_active = False
        user = self.repo.save(user)
        logger.info(f"User {user.id} deactivated")
        return user
