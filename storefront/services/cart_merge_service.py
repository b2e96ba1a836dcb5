# storefront/services/cart_merge_service.py
from typing import Dict, Any

from sqlalchemy.orm import Session

from storefront.data.database import atomic
from storefront.domain.errors import ConflictError, UserNotFoundError
from storefront.domain.ownership import CartOwner
from storefront.repos.cart_repo import CartRepo
from storefront.repos.user_repo import UserRepo
from storefront.services.cart_service import serialize_cart
from storefront.services.lock_service import LockService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartMergeService:
    """
    Folds a guest (session) cart into the user's cart at login/signup.

    1. find the session cart (none -> nothing to merge)
    2. find or create the user cart
    3. same variant in both -> sum quantities, otherwise move the row over
    4. delete the session cart so it can never be merged again
    5. return the user cart

    Runs under a per-user redis lock and inside one transaction, so a double
    login cannot create two user carts or count items twice, and a failure
    leaves the session cart untouched.
    """

    def __init__(self, db: Session, lock_service: LockService):
        self.db = db
        self.repo = CartRepo(db)
        self.users = UserRepo(db)
        self.lock_service = lock_service

    def merge(self, old_session_id: str | None, user_id: int) -> Dict[str, Any]:
        if not self.users.get_user(user_id):
            raise UserNotFoundError(f"User {user_id} not found")

        user_owner = CartOwner.user(user_id)

        with self.lock_service.user_merge_lock(user_id):
            with atomic(self.db):
                user_cart = self.repo.get_cart_by_owner(user_owner, for_update=True)
                if not user_cart:
                    user_cart = self.repo.create_cart(user_owner)
                    logger.info(f"Created cart {user_cart.id} for user {user_id}")

                session_cart = None
                if old_session_id:
                    session_cart = self.repo.get_cart_by_owner(
                        CartOwner.session(old_session_id), for_update=True
                    )

                if session_cart is None:
                    logger.info(f"No guest cart to merge for user {user_id}")
                else:
                    self._fold_into(session_cart, user_cart)

            cart = self.repo.get_cart_by_owner(user_owner)
            return serialize_cart(cart, self.repo.get_cart_items(cart.id))

    def _fold_into(self, session_cart, user_cart):
        moved = coalesced = 0

        for item in list(session_cart.items):
            existing = self.repo.get_cart_item(user_cart.id, item.variant_id)
            if existing:
                existing.quantity += item.quantity
                coalesced += 1
            else:
                self.repo.move_cart_item(item.id, user_cart.id)
                moved += 1

        self.db.flush()
        #only coalesced rows are left under the session cart at this point
        self.repo.delete_cart(session_cart.id)

        rowcount = self.repo.update_cart_version(
            cart_id=user_cart.id,
            old_version=user_cart.version,
            new_data={"version": user_cart.version + 1},
        )
        if rowcount == 0:
            raise ConflictError("User cart was modified during merge")

        logger.info(
            f"Merged guest cart {session_cart.id} into cart {user_cart.id}: "
            f"{moved} moved, {coalesced} coalesced"
        )
