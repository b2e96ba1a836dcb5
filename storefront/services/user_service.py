# storefront/services/user_service.py
from sqlalchemy.orm import Session

from storefront.data.database import atomic
from storefront.data.models.user import UserModel
from storefront.domain.errors import ConflictError, UserNotFoundError
from storefront.domain.schemas import UserCreate, UserRead
from storefront.repos.user_repo import UserRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserRead:
        """Create a user. With an explicit id that already exists, the existing user is returned."""
        if payload.id is not None:
            existing = self.repo.get_user(payload.id)
            if existing:
                return UserRead(id=existing.id, name=existing.name)

        with atomic(self.db):
            user = self.repo.add_user(UserModel(id=payload.id, name=payload.name))
            created = UserRead(id=user.id, name=user.name)

        logger.info(f"Created user {created.id}")
        return created

    def register_user(self, payload: UserCreate) -> UserRead:
        """Create a brand new account. An id that is already taken is a ConflictError, never a login."""
        if payload.id is not None and self.repo.get_user(payload.id):
            raise ConflictError(f"User {payload.id} already exists")

        with atomic(self.db):
            user = self.repo.add_user(UserModel(id=payload.id, name=payload.name))
            created = UserRead(id=user.id, name=user.name)

        logger.info(f"Registered user {created.id}")
        return created

    def get_user(self, user_id: int) -> UserRead:
        user = self.repo.get_user(user_id)
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")
        return UserRead(id=user.id, name=user.name)
