# storefront/services/inventory_ledger.py
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel
from storefront.data.models.product_variant import ProductVariantModel
from storefront.domain.errors import (
    InsufficientStockError,
    StockShortage,
    VariantNotFoundError,
)
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class InventoryLedger:
    """
    Stock and sales counters.

    Both primitives only run inside a transaction already opened by the caller
    (the order transaction) and never commit themselves:
    - debit: compare-and-swap, stock only moves if stock >= qty, sales_count += qty
    - credit: stock += qty, sales_count untouched (it is monotonic)
    """

    def __init__(self, db: Session):
        self.db = db

    def _require_transaction(self):
        if not self.db.in_transaction():
            raise RuntimeError("Inventory changes must run inside an open transaction")

    @staticmethod
    def _check_qty(qty: int):
        if qty <= 0:
            raise ValueError("Quantity must be greater than 0")

    def debit(self, variant_id: int, qty: int) -> None:
        self._check_qty(qty)
        self._require_transaction()

        #UPDATE product_variants SET stock = stock - 2 WHERE id = 1 AND stock >= 2
        res = self.db.execute(
            update(ProductVariantModel)
            .where(
                ProductVariantModel.id == variant_id,
                ProductVariantModel.stock >= qty,
            )
            .values(stock=ProductVariantModel.stock - qty)
            .execution_options(synchronize_session=False)
        )

        if res.rowcount == 0:
            #lost the race or never had enough, find out which
            available = self.db.execute(
                select(ProductVariantModel.stock).where(ProductVariantModel.id == variant_id)
            ).scalar_one_or_none()
            if available is None:
                raise VariantNotFoundError(variant_id)
            logger.warning(
                f"Debit rejected for variant {variant_id}: requested {qty}, available {available}"
            )
            raise InsufficientStockError([StockShortage(variant_id, available, qty)])

        product_id = select(ProductVariantModel.product_id).where(
            ProductVariantModel.id == variant_id
        ).scalar_subquery()
        self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(sales_count=ProductModel.sales_count + qty)
            .execution_options(synchronize_session=False)
        )

        logger.info(f"Debited {qty} from variant {variant_id}")

    def credit(self, variant_id: int, qty: int) -> None:
        self._check_qty(qty)
        self._require_transaction()

        res = self.db.execute(
            update(ProductVariantModel)
            .where(ProductVariantModel.id == variant_id)
            .values(stock=ProductVariantModel.stock + qty)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount == 0:
            raise VariantNotFoundError(variant_id)

        logger.info(f"Credited {qty} to variant {variant_id}")
