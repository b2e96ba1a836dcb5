# storefront/api/routers/users.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from storefront.api.deps import get_notification_service
from storefront.data.database import get_db
from storefront.domain.errors import ConflictError, NotFoundError
from storefront.domain.schemas import OrderOut, UserCreate, UserRead
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderService
from storefront.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/", response_model=UserRead, status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    try:
        return UserService(db).create_user(payload)
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: int, db: Session = Depends(get_db)):
    try:
        return UserService(db).get_user(user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{user_id}/orders", response_model=List[OrderOut])
def list_user_orders(
    user_id: int,
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
):
    """Order history of one user, newest first."""
    try:
        UserService(db).get_user(user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return OrderService(db, notifications).list_orders(user_id)
