# storefront/repos/user_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.models.user import UserModel


class UserRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> UserModel | None:
        return self.db.get(UserModel, user_id)

    def get_user_by_name(self, name: str) -> UserModel | None:
        stmt = select(UserModel).where(UserModel.name == name).order_by(UserModel.id).limit(1)
        return self.db.execute(stmt).scalar_one_or_none()

    def add_user(self, user: UserModel) -> UserModel:
        #flush to get the id, the caller commits
        self.db.add(user)
        self.db.flush()
        return user
