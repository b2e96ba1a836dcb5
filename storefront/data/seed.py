# storefront/data/seed.py
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.database import SessionLocal, atomic
from storefront.data.models import ProductModel, ProductVariantModel, UserModel
from storefront.repos.catalog_repo import CatalogRepo
from storefront.repos.user_repo import UserRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

DEMO_USER = "Demo User"

DEMO_CATALOG = {
    "Keyboard": [("KB-US", Decimal("199.99"), 25), ("KB-PL", Decimal("199.99"), 10)],
    "Mouse": [("MS-BLK", Decimal("49.50"), 100)],
    "Monitor": [("MON-27", Decimal("899.00"), 3)],
}


def seed_demo_data(db: Session) -> bool:
    """Fill an empty catalog with demo products and a demo user. Returns False if there was data already."""
    users = UserRepo(db)
    catalog = CatalogRepo(db)

    with atomic(db):
        #not forcing: only seed an empty catalog
        if db.execute(select(ProductModel.id).limit(1)).first():
            return False

        if not users.get_user_by_name(DEMO_USER):
            users.add_user(UserModel(name=DEMO_USER))

        for name, variants in DEMO_CATALOG.items():
            product = ProductModel(name=name, sales_count=0)
            product.variants = [
                ProductVariantModel(sku=sku, price=price, stock=stock)
                for sku, price, stock in variants
            ]
            catalog.add(product)

    logger.info(f"Seeded demo catalog: {', '.join(DEMO_CATALOG)}")
    return True


def seed():
    db = SessionLocal()
    try:
        seed_demo_data(db)
    finally:
        db.close()


if __name__ == "__main__":
    seed()
