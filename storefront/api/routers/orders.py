# storefront/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from storefront.api.deps import get_notification_service
from storefront.data.database import get_db
from storefront.domain.errors import (
    ConflictError,
    InsufficientStockError,
    InvalidStatusTransition,
    NotFoundError,
    TransactionAbortedError,
)
from storefront.domain.schemas import OrderCreate, OrderOut, OrderStatusIn
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session, notifications: NotificationService):
    return OrderService(db, notification_service=notifications)


@router.post("/", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderCreate,
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
):
    """
    Checkout: turn the user's cart into an order.
    409 with the under-stocked lines when stock is short, the cart is left as it was.
    """
    svc = get_service(db, notifications)
    try:
        return svc.create_order_from_cart(payload.user_id, payload.cart_id)
    except InsufficientStockError as e:
        raise HTTPException(status_code=409, detail=e.to_payload())
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail={"kind": "Conflict", "message": str(e)})
    except TransactionAbortedError as e:
        logger.error(f"Checkout of cart {payload.cart_id} aborted: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/", response_model=List[OrderOut])
def list_orders(
    user_id: int | None = Query(None, gt=0),
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
):
    """Orders of one user, or every order (admin) without user_id."""
    return get_service(db, notifications).list_orders(user_id)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    user_id: int = Query(...),
    admin: bool = Query(False),
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
):
    svc = get_service(db, notifications)
    try:
        return svc.get_order(order_id, user_id, is_admin=admin)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: int,
    payload: OrderStatusIn,
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
):
    svc = get_service(db, notifications)
    try:
        return svc.update_status(order_id, payload.status)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TransactionAbortedError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.delete("/{order_id}", status_code=204)
def delete_order(
    order_id: int,
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
):
    svc = get_service(db, notifications)
    try:
        svc.delete_order(order_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
