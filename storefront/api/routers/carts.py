#storefront/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from storefront.api.deps import get_cart_owner
from storefront.data.database import get_db
from storefront.domain.errors import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    TransactionAbortedError,
)
from storefront.domain.ownership import CartOwner
from storefront.domain.schemas import ItemIn, ItemQuantityIn, CartOut
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/carts", tags=["carts"])


def get_service(db: Session):
    return CartService(db)


def _to_http(e: Exception) -> HTTPException:
    if isinstance(e, InsufficientStockError):
        return HTTPException(status_code=409, detail=e.to_payload())
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ConflictError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, TransactionAbortedError):
        return HTTPException(status_code=503, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


@router.get("/me", response_model=CartOut)
def get_cart(owner: CartOwner = Depends(get_cart_owner), db: Session = Depends(get_db)):
    svc = get_service(db)
    cart = svc.get_cart(owner)
    if not cart:
        raise HTTPException(status_code=404, detail="Cart not found")
    return cart


@router.post("/me/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    owner: CartOwner = Depends(get_cart_owner),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.add_item(owner, payload.variant_id, payload.quantity)
    except (ValueError, RuntimeError) as e:
        raise _to_http(e)


@router.patch("/me/items/{variant_id}", response_model=CartOut)
def update_item(
    variant_id: int,
    payload: ItemQuantityIn,
    owner: CartOwner = Depends(get_cart_owner),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.update_item(owner, variant_id, payload.quantity)
    except (ValueError, RuntimeError) as e:
        raise _to_http(e)


@router.delete("/me/items/{variant_id}", response_model=CartOut)
def remove_item(
    variant_id: int,
    owner: CartOwner = Depends(get_cart_owner),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.remove_item(owner, variant_id)
    except (ValueError, RuntimeError) as e:
        raise _to_http(e)


@router.delete("/me", response_model=CartOut)
def clear_cart(owner: CartOwner = Depends(get_cart_owner), db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.clear_cart(owner)
    except (ValueError, RuntimeError) as e:
        raise _to_http(e)
