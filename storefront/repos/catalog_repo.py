# storefront/repos/catalog_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel
from storefront.data.models.product_variant import ProductVariantModel


class CatalogRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_variant(self, variant_id: int) -> ProductVariantModel | None:
        return self.db.get(ProductVariantModel, variant_id)

    def get_variant_by_sku(self, sku: str) -> ProductVariantModel | None:
        return self.db.execute(
            select(ProductVariantModel).where(ProductVariantModel.sku == sku)
        ).scalar_one_or_none()

    def lock_variants(self, variant_ids) -> dict[int, ProductVariantModel]:
        """
        SELECT ... FOR UPDATE on the given variants, always in ascending id order
        so two checkouts touching the same variants cannot deadlock.
        populate_existing makes sure the values come from this read, not the identity map.
        """
        ids = sorted(set(variant_ids))
        if not ids:
            return {}
        rows = self.db.execute(
            select(ProductVariantModel)
            .where(ProductVariantModel.id.in_(ids))
            .order_by(ProductVariantModel.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars()
        return {v.id: v for v in rows}

    def add(self, obj):
        self.db.add(obj)
        self.db.flush()
        return obj
