#storefront/data/models/product.py
from sqlalchemy import Column, Integer, String, CheckConstraint
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)

    # only ever incremented, by the order transaction
    sales_count = Column(Integer, nullable=False, default=0)

    variants = relationship("ProductVariantModel", back_populates="product")

    __table_args__ = (
        CheckConstraint("sales_count >= 0", name="ck_products_sales_count_non_negative"),
    )
