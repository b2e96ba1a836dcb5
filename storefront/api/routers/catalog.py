# storefront/api/routers/catalog.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.errors import ConflictError, NotFoundError
from storefront.domain.schemas import (
    ProductCreate,
    ProductOut,
    VariantCreate,
    VariantOut,
    VariantPriceIn,
)
from storefront.services.catalog_service import CatalogService

router = APIRouter(tags=["catalog"])


@router.post("/products", response_model=ProductOut, status_code=201)
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    return CatalogService(db).create_product(payload.name)


@router.post("/products/{product_id}/variants", response_model=VariantOut, status_code=201)
def create_variant(product_id: int, payload: VariantCreate, db: Session = Depends(get_db)):
    svc = CatalogService(db)
    try:
        return svc.create_variant(product_id, payload.sku, payload.price, payload.stock)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConflictError:
        raise HTTPException(status_code=409, detail=f"SKU {payload.sku} already exists")


@router.get("/variants/{variant_id}", response_model=VariantOut)
def get_variant(variant_id: int, db: Session = Depends(get_db)):
    try:
        return CatalogService(db).get_variant(variant_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/variants/{variant_id}/price", response_model=VariantOut)
def update_variant_price(variant_id: int, payload: VariantPriceIn, db: Session = Depends(get_db)):
    try:
        return CatalogService(db).update_variant_price(variant_id, payload.price)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
