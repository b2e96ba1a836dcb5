# storefront/services/auth_service.py
from typing import Dict, Any

from sqlalchemy.orm import Session

from storefront.domain.schemas import UserCreate
from storefront.services.cart_merge_service import CartMergeService
from storefront.services.lock_service import LockService
from storefront.services.user_service import UserService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class AuthSessionService:
    """
    Boundary between authentication and the cart.

    Credentials and tokens are handled upstream; this service is told which
    anonymous session the visitor had *before* authenticating and which user
    they are now, and folds the guest cart into the account.
    Both identifiers are passed in, nothing is read from ambient session state.
    """

    def __init__(self, db: Session, lock_service: LockService):
        self.users = UserService(db)
        self.merge_service = CartMergeService(db, lock_service)

    def on_successful_authentication(self, old_session_id: str | None, user_id: int) -> Dict[str, Any]:
        logger.info(f"User {user_id} authenticated, previous session {old_session_id!r}")
        return self.merge_service.merge(old_session_id, user_id)

    def sign_in(self, user_id: int, old_session_id: str | None) -> Dict[str, Any]:
        user = self.users.get_user(user_id)
        cart = self.on_successful_authentication(old_session_id, user.id)
        return {"user": user, "cart": cart}

    def sign_up(self, payload: UserCreate, old_session_id: str | None) -> Dict[str, Any]:
        user = self.users.register_user(payload)
        cart = self.on_successful_authentication(old_session_id, user.id)
        return {"user": user, "cart": cart}
