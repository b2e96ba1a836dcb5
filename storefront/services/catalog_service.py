# storefront/services/catalog_service.py
from decimal import Decimal
from typing import Dict, Any

from sqlalchemy.orm import Session

from storefront.data.database import atomic
from storefront.data.models.product import ProductModel
from storefront.data.models.product_variant import ProductVariantModel
from storefront.domain.errors import ConflictError, NotFoundError, VariantNotFoundError
from storefront.repos.catalog_repo import CatalogRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def serialize_variant(variant: ProductVariantModel) -> Dict[str, Any]:
    return {
        "id": variant.id,
        "product_id": variant.product_id,
        "sku": variant.sku,
        "price": variant.price,
        "stock": variant.stock,
        "sales_count": variant.product.sales_count,
    }


class CatalogService:
    """
    Thin catalog admin: products, variants, prices.
    Stock is only set when a variant is created, afterwards it moves through the order transaction.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepo(db)

    def create_product(self, name: str) -> Dict[str, Any]:
        with atomic(self.db):
            product = self.repo.add(ProductModel(name=name, sales_count=0))
            product_id = product.id

        logger.info(f"Created product {product_id} ({name})")
        return {"id": product_id, "name": name, "sales_count": 0}

    def create_variant(self, product_id: int, sku: str, price: Decimal, stock: int) -> Dict[str, Any]:
        if stock < 0:
            raise ValueError("Stock must not be negative")
        if price < 0:
            raise ValueError("Price must not be negative")

        if not self.repo.get_product(product_id):
            raise NotFoundError(f"Product {product_id} not found")
        if self.repo.get_variant_by_sku(sku):
            raise ConflictError(f"SKU {sku} already exists")

        with atomic(self.db):
            variant = self.repo.add(
                ProductVariantModel(product_id=product_id, sku=sku, price=price, stock=stock)
            )
            variant_id = variant.id

        logger.info(f"Created variant {variant_id} ({sku}) of product {product_id}")
        return self.get_variant(variant_id)

    def get_variant(self, variant_id: int) -> Dict[str, Any]:
        variant = self.repo.get_variant(variant_id)
        if not variant:
            raise VariantNotFoundError(variant_id)
        return serialize_variant(variant)

    def update_variant_price(self, variant_id: int, price: Decimal) -> Dict[str, Any]:
        if price < 0:
            raise ValueError("Price must not be negative")

        with atomic(self.db):
            variant = self.repo.get_variant(variant_id)
            if not variant:
                raise VariantNotFoundError(variant_id)
            old_price = variant.price
            variant.price = price

        logger.info(f"Variant {variant_id} price {old_price} -> {price}")
        return self.get_variant(variant_id)
