# storefront/repos/cart_repo.py
from datetime import datetime, timezone

from sqlalchemy import select, update, delete
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.ownership import CartOwner, OwnerType


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart(self, cart_id: int, for_update: bool = False) -> CartModel | None:
        stmt = select(CartModel).where(CartModel.id == cart_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def get_cart_by_owner(self, owner: CartOwner, for_update: bool = False) -> CartModel | None:
        stmt = select(CartModel).where(
            CartModel.owner_type == owner.kind.value,
            CartModel.owner_key == owner.key,
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def create_cart(self, owner: CartOwner, expires_at: datetime | None = None) -> CartModel:
        cart = CartModel(
            owner_type=owner.kind.value,
            owner_key=owner.key,
            version=1,
            expires_at=expires_at,
        )
        self.db.add(cart)
        #flush so the unique owner constraint fires inside the caller's transaction
        self.db.flush()
        return cart

    def get_cart_items(self, cart_id: int) -> list[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.cart_id == cart_id)
                .options(selectinload(CartItemModel.variant))
                .order_by(CartItemModel.id)
            ).scalars()
        )

    def get_cart_item(self, cart_id: int, variant_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.variant_id == variant_id,
            )
        ).scalar_one_or_none()

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def delete_cart_item(self, cart_id: int, variant_id: int) -> int:
        res = self.db.execute(
            delete(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.variant_id == variant_id,
            )
        )
        return res.rowcount

    def delete_cart_items(self, cart_id: int) -> int:
        res = self.db.execute(delete(CartItemModel).where(CartItemModel.cart_id == cart_id))
        return res.rowcount

    def move_cart_item(self, item_id: int, cart_id: int) -> int:
        res = self.db.execute(
            update(CartItemModel)
            .where(CartItemModel.id == item_id)
            .values(cart_id=cart_id)
            .execution_options(synchronize_session=False)
        )
        return res.rowcount

    def delete_cart(self, cart_id: int, version: int | None = None) -> int:
        """Delete a cart and its items. With ``version`` the delete only hits an unchanged cart."""
        stmt = delete(CartModel).where(CartModel.id == cart_id)
        if version is not None:
            stmt = stmt.where(CartModel.version == version)
        res = self.db.execute(stmt.execution_options(synchronize_session=False))
        if res.rowcount:
            #ON DELETE CASCADE covers postgres, this covers backends without FK enforcement
            self.db.execute(
                delete(CartItemModel)
                .where(CartItemModel.cart_id == cart_id)
                .execution_options(synchronize_session=False)
            )
        return res.rowcount

    def update_cart_version(self, cart_id: int, old_version: int, new_data: dict) -> int:
        #UPDATE carts SET version = 2, ... WHERE id = 1 AND version = 1
        res = self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id, CartModel.version == old_version)
            .values(**new_data)
            .execution_options(synchronize_session=False)
        )
        return res.rowcount

    def get_expired_guest_carts(self, now: datetime | None = None) -> list[CartModel]:
        now = now or datetime.now(timezone.utc)
        return list(
            self.db.execute(
                select(CartModel).where(
                    CartModel.owner_type == OwnerType.SESSION.value,
                    CartModel.expires_at.is_not(None),
                    CartModel.expires_at < now,
                )
            ).scalars()
        )
