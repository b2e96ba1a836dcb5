# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List
from decimal import Decimal
from datetime import datetime

from storefront.data.models.order import OrderStatus


class ItemIn(BaseModel):
    """Add a variant to the cart."""

    variant_id: int = Field(..., gt=0, description="Variant id (> 0)")
    quantity: int = Field(..., gt=0, description="Quantity (> 0)")


class ItemQuantityIn(BaseModel):
    """Set the quantity of a cart line, 0 removes it."""

    quantity: int = Field(..., ge=0, description="New quantity (>= 0)")


class CartItemOut(BaseModel):
    variant_id: int
    quantity: int
    unit_price: Decimal | None = None
    line_total: Decimal


class CartOut(BaseModel):
    cart_id: int
    owner_type: str
    owner_key: str
    version: int
    items: List[CartItemOut]
    total: Decimal
    expires_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class UserCreate(BaseModel):
    id: int | None = Field(None, gt=0, description="Optional user id (> 0)")
    name: str = Field(..., min_length=1, max_length=100, description="User name")


class UserRead(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class SignInIn(BaseModel):
    """Identity already verified upstream, plus the pre-login session id."""

    user_id: int = Field(..., gt=0)
    session_id: str | None = Field(None, min_length=1, description="Anonymous session id before login")


class SignUpIn(UserCreate):
    session_id: str | None = Field(None, min_length=1, description="Anonymous session id before signup")


class AuthOut(BaseModel):
    user: UserRead
    cart: CartOut


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)


class ProductOut(BaseModel):
    id: int
    name: str
    sales_count: int


class VariantCreate(BaseModel):
    sku: str = Field(..., min_length=1, max_length=64)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(0, ge=0)


class VariantPriceIn(BaseModel):
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)


class VariantOut(BaseModel):
    id: int
    product_id: int
    sku: str
    price: Decimal
    stock: int
    sales_count: int


class OrderCreate(BaseModel):
    cart_id: int = Field(..., gt=0, description="Cart id (> 0)")
    user_id: int = Field(..., gt=0, description="User id (> 0)")


class OrderItemOut(BaseModel):
    variant_id: int
    quantity: int
    price: Decimal


class OrderOut(BaseModel):
    order_id: int
    user_id: int
    amount: Decimal
    status: OrderStatus
    items: List[OrderItemOut]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderStatusIn(BaseModel):
    status: OrderStatus
