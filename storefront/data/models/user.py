# storefront/data/models/user.py
from sqlalchemy import Column, Integer, String

from storefront.data.database import Base


class UserModel(Base):
    """Account owner. Carts reference users by owner key (CartOwner.user), orders by FK."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
