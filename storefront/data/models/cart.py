#storefront/data/models/cart.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.domain.ownership import CartOwner, OwnerType


def _utcnow():
    return datetime.now(timezone.utc)


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)

    #owner is a tagged value: (SESSION, session id) or (USER, user id)
    owner_type = Column(String(16), nullable=False)
    owner_key = Column(String, nullable=False)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
    #guest carts only
    expires_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship(
        "CartItemModel",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItemModel.id",
    )

    __table_args__ = (
        UniqueConstraint("owner_type", "owner_key", name="u_cart_owner"),
        CheckConstraint(
            f"owner_type IN ('{OwnerType.SESSION.value}', '{OwnerType.USER.value}')",
            name="ck_carts_owner_type",
        ),
    )

    @property
    def owner(self) -> CartOwner:
        return CartOwner(OwnerType(self.owner_type), self.owner_key)
