# storefront/services/order_service.py
from decimal import Decimal
from typing import Dict, Any

from sqlalchemy.orm import Session

from storefront.data.database import atomic
from storefront.data.models.order import OrderModel, OrderStatus
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.errors import (
    CartNotFoundError,
    ConflictError,
    EmptyCartError,
    InsufficientStockError,
    InvalidStatusTransition,
    OrderNotFoundError,
    StockShortage,
    VariantNotFoundError,
)
from storefront.domain.ownership import CartOwner
from storefront.repos.cart_repo import CartRepo
from storefront.repos.catalog_repo import CatalogRepo
from storefront.repos.order_repo import OrderRepo
from storefront.services.inventory_ledger import InventoryLedger
from storefront.services.notification_service import NotificationService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


#CANCELED is reachable from every non-terminal state
ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELED: set(),
}

#goods still in the warehouse go back to stock on cancel
_RESTOCK_ON_CANCEL = {OrderStatus.PENDING, OrderStatus.PROCESSING}


def serialize_order(order: OrderModel) -> Dict[str, Any]:
    return {
        "order_id": order.id,
        "user_id": order.user_id,
        "amount": order.amount,
        "status": order.status,
        "items": [
            {
                "variant_id": i.variant_id,
                "quantity": i.quantity,
                "price": i.price,
            }
            for i in order.items
        ],
        "created_at": order.created_at,
    }


class OrderService:
    """
    Order domain, kept apart from the cart service.
    create_order_from_cart is the only place where an order is born
    and (with cancellation) the only caller of the inventory ledger.
    """

    def __init__(self, db: Session, notification_service: NotificationService | None = None):
        self.db = db
        self.repo = OrderRepo(db)
        self.carts = CartRepo(db)
        self.catalog = CatalogRepo(db)
        self.ledger = InventoryLedger(db)
        self.notification_service = notification_service or NotificationService()

    def create_order_from_cart(self, user_id: int, cart_id: int) -> Dict[str, Any]:
        """
        Turn the user's cart into an order, all or nothing.

        1. lock the cart, then its variants (ascending id) and read stock/price
        2. any line above stock -> InsufficientStockError listing every such line
        3. amount = sum(quantity * live price), prices frozen into order items
        4. insert order + items
        5. debit stock, bump sales_count (compare-and-swap in the ledger)
        6. delete the cart, guarded by its version
        Any failure rolls everything back and leaves the cart as it was.
        """
        with atomic(self.db):
            cart = self.carts.get_cart(cart_id, for_update=True)
            if not cart:
                raise CartNotFoundError(f"Cart {cart_id} not found")

            if cart.owner != CartOwner.user(user_id):
                raise PermissionError("Cart does not belong to this user")

            items = self.carts.get_cart_items(cart_id)
            if not items:
                raise EmptyCartError("Cannot place an order from an empty cart")

            variants = self.catalog.lock_variants(i.variant_id for i in items)

            shortages = []
            for item in items:
                variant = variants.get(item.variant_id)
                if variant is None:
                    raise VariantNotFoundError(item.variant_id)
                if item.quantity > variant.stock:
                    shortages.append(StockShortage(variant.id, variant.stock, item.quantity))

            if shortages:
                logger.warning(
                    f"Checkout of cart {cart_id} rejected, under-stocked: "
                    f"{[s.variant_id for s in shortages]}"
                )
                raise InsufficientStockError(shortages)

            amount = sum(
                (variants[i.variant_id].price * i.quantity for i in items),
                Decimal("0.00"),
            )

            order = OrderModel(
                user_id=user_id,
                status=OrderStatus.PENDING.value,
                amount=amount,
                items=[
                    OrderItemModel(
                        variant_id=i.variant_id,
                        quantity=i.quantity,
                        price=variants[i.variant_id].price,
                    )
                    for i in items
                ],
            )
            self.repo.add_order(order)

            for item in items:
                self.ledger.debit(item.variant_id, item.quantity)

            if self.carts.delete_cart(cart.id, version=cart.version) == 0:
                raise ConflictError(f"Cart {cart_id} changed during checkout")

            order_id = order.id

        logger.info(f"Order {order_id} created from cart {cart_id}, amount {amount}")

        #only after commit, a failed enqueue must not undo the order
        self.notification_service.notify(user_id, order_id, "ORDER_PLACED")

        return self.get_order(order_id, user_id)

    def get_order(self, order_id: int, user_id: int, is_admin: bool = False) -> Dict[str, Any]:
        order = self.repo.get_order(order_id)

        if not order:
            raise OrderNotFoundError(f"Order {order_id} not found")

        if not is_admin and order.user_id != user_id:
            raise PermissionError("No access to this order")

        return serialize_order(order)

    def list_orders(self, user_id: int | None = None) -> list[Dict[str, Any]]:
        return [serialize_order(o) for o in self.repo.list_orders(user_id)]

    def update_status(self, order_id: int, status: OrderStatus | str) -> Dict[str, Any]:
        requested = OrderStatus(status)

        with atomic(self.db):
            order = self.repo.get_order(order_id, for_update=True)
            if not order:
                raise OrderNotFoundError(f"Order {order_id} not found")

            current = OrderStatus(order.status)
            if requested not in ALLOWED_TRANSITIONS[current]:
                raise InvalidStatusTransition(current.value, requested.value)

            if requested is OrderStatus.CANCELED and current in _RESTOCK_ON_CANCEL:
                for item in order.items:
                    self.ledger.credit(item.variant_id, item.quantity)

            order.status = requested.value
            user_id = order.user_id

        logger.info(f"Order {order_id}: {current.value} -> {requested.value}")
        self.notification_service.notify(user_id, order_id, f"ORDER_{requested.value}")

        return self.get_order(order_id, user_id)

    def delete_order(self, order_id: int) -> None:
        """Administrative delete. Order items are removed with the order, stock is not touched."""
        with atomic(self.db):
            order = self.repo.get_order(order_id, for_update=True)
            if not order:
                raise OrderNotFoundError(f"Order {order_id} not found")
            self.repo.delete_order(order)

        logger.info(f"Order {order_id} deleted")
