# storefront/api/deps.py
from fastapi import HTTPException, Query

from storefront.domain.ownership import CartOwner
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService


def get_lock_service() -> LockService:
    return LockService()


def get_notification_service() -> NotificationService:
    return NotificationService()


def get_cart_owner(
    session_id: str | None = Query(None, min_length=1),
    user_id: int | None = Query(None, gt=0),
) -> CartOwner:
    #exactly one owner key, a cart is either a guest cart or a user cart
    if (session_id is None) == (user_id is None):
        raise HTTPException(status_code=400, detail="Pass exactly one of session_id or user_id")
    if user_id is not None:
        return CartOwner.user(user_id)
    return CartOwner.session(session_id)
