from datetime import datetime, timezone, timedelta
from decimal import Decimal
from typing import Dict, Any
from sqlalchemy.orm import Session
from storefront.data.database import atomic
from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import (
    CartNotFoundError,
    ConflictError,
    InsufficientStockError,
    StockShortage,
    UserNotFoundError,
    VariantNotFoundError,
)
from storefront.domain.ownership import CartOwner
from storefront.repos.cart_repo import CartRepo
from storefront.repos.catalog_repo import CatalogRepo
from storefront.repos.user_repo import UserRepo
from storefront.utils.settings import GUEST_CART_TTL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def guest_cart_expiry() -> datetime:
    return datetime.now(timezone.utc) + timedelta(seconds=GUEST_CART_TTL_SECONDS)


def serialize_cart(cart: CartModel, items: list[CartItemModel]) -> Dict[str, Any]:
    lines = []
    total = Decimal("0.00")
    for i in items:
        price = i.variant.price if i.variant is not None else i.unit_price
        line_total = (price or Decimal("0.00")) * i.quantity
        total += line_total
        lines.append(
            {
                "variant_id": i.variant_id,
                "quantity": i.quantity,
                "unit_price": price,
                "line_total": line_total,
            }
        )

    return {
        "cart_id": cart.id,
        "owner_type": cart.owner_type,
        "owner_key": cart.owner_key,
        "version": cart.version,
        "items": lines,
        "total": total,
        "expires_at": cart.expires_at,
    }


class CartService:
    """
    Cart store use cases.
    commands (add, update, remove, clear) bump the cart version (optimistic locking)
    query (get) is read only
    carts are created lazily on the first add
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = CartRepo(db)
        self.catalog = CatalogRepo(db)
        self.users = UserRepo(db)

    #query
    def get_cart(self, owner: CartOwner) -> Dict[str, Any] | None:
        cart = self.repo.get_cart_by_owner(owner)
        if not cart:
            return None
        return serialize_cart(cart, self.repo.get_cart_items(cart.id))

    #commands
    def add_item(self, owner: CartOwner, variant_id: int, quantity: int) -> Dict[str, Any]:
        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")

        variant = self.catalog.get_variant(variant_id)
        if not variant:
            raise VariantNotFoundError(variant_id)

        if owner.user_id is not None and not self.users.get_user(owner.user_id):
            raise UserNotFoundError(f"User {owner.user_id} not found")

        with atomic(self.db):
            cart = self.repo.get_cart_by_owner(owner)
            if not cart:
                cart = self.repo.create_cart(
                    owner,
                    expires_at=guest_cart_expiry() if owner.is_guest else None,
                )
                logger.info(f"Created cart {cart.id} for {owner}")

            existing_item = self.repo.get_cart_item(cart.id, variant_id)
            new_quantity = quantity + (existing_item.quantity if existing_item else 0)

            #soft check, checkout validates again under lock
            if new_quantity > variant.stock:
                raise InsufficientStockError(
                    [StockShortage(variant_id, variant.stock, new_quantity)]
                )

            if existing_item:
                logger.info(
                    f"Variant {variant_id} already in cart {cart.id}, "
                    f"quantity {existing_item.quantity} -> {new_quantity}"
                )
                existing_item.quantity = new_quantity
                existing_item.unit_price = variant.price
            else:
                self.repo.add_cart_item(
                    CartItemModel(
                        cart_id=cart.id,
                        variant_id=variant_id,
                        quantity=quantity,
                        unit_price=variant.price,
                    )
                )

            self._bump_version(cart)

        return self.get_cart(owner)

    def update_item(self, owner: CartOwner, variant_id: int, quantity: int) -> Dict[str, Any]:
        if quantity < 0:
            raise ValueError("Quantity must not be negative")
        if quantity == 0:
            return self.remove_item(owner, variant_id)

        cart = self._require_cart(owner)
        item = self.repo.get_cart_item(cart.id, variant_id)
        if not item:
            raise VariantNotFoundError(variant_id)

        if quantity > item.variant.stock:
            raise InsufficientStockError(
                [StockShortage(variant_id, item.variant.stock, quantity)]
            )

        with atomic(self.db):
            item.quantity = quantity
            item.unit_price = item.variant.price
            self._bump_version(cart)

        logger.info(f"Cart {cart.id}: variant {variant_id} quantity set to {quantity}")
        return self.get_cart(owner)

    def remove_item(self, owner: CartOwner, variant_id: int) -> Dict[str, Any]:
        cart = self._require_cart(owner)

        with atomic(self.db):
            if self.repo.delete_cart_item(cart.id, variant_id) == 0:
                raise VariantNotFoundError(variant_id)
            self._bump_version(cart)

        logger.info(f"Removed variant {variant_id} from cart {cart.id}")
        return self.get_cart(owner)

    def clear_cart(self, owner: CartOwner) -> Dict[str, Any]:
        cart = self._require_cart(owner)

        with atomic(self.db):
            self.repo.delete_cart_items(cart.id)
            self._bump_version(cart)

        logger.info(f"Cleared cart {cart.id}")
        return self.get_cart(owner)

    def _require_cart(self, owner: CartOwner) -> CartModel:
        cart = self.repo.get_cart_by_owner(owner)
        if not cart:
            raise CartNotFoundError(f"No cart for {owner}")
        return cart

    def _bump_version(self, cart: CartModel):
        new_data = {"version": cart.version + 1}
        if cart.expires_at is not None:
            #guest is active, keep the cart alive
            new_data["expires_at"] = guest_cart_expiry()

        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=cart.version,
            new_data=new_data,
        )

        #0 rows means another request changed the cart since we read it
        if rowcount == 0:
            raise ConflictError("Cart was modified by another operation")
