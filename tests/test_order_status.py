import pytest
from sqlalchemy import func, select

from storefront.data.models import OrderItemModel, OrderStatus, ProductModel, ProductVariantModel
from storefront.domain.errors import InvalidStatusTransition, OrderNotFoundError
from storefront.domain.ownership import CartOwner
from storefront.services.cart_service import CartService
from storefront.services.order_service import ALLOWED_TRANSITIONS, OrderService


@pytest.fixture
def placed(db, notifications, make_user, make_variant):
    """An order of 2 units of a variant that had 5 in stock."""
    user_id = make_user()
    variant_id = make_variant(stock=5)
    cart = CartService(db).add_item(CartOwner.user(user_id), variant_id, 2)
    order = OrderService(db, notifications).create_order_from_cart(user_id, cart["cart_id"])
    return user_id, variant_id, order["order_id"]


def _stock_and_sales(db, variant_id):
    db.expire_all()
    variant = db.get(ProductVariantModel, variant_id)
    return variant.stock, db.get(ProductModel, variant.product_id).sales_count


def test_happy_path_to_delivered(db, notifications, placed):
    user_id, _, order_id = placed
    svc = OrderService(db, notifications)

    for status in ("PROCESSING", "SHIPPED", "DELIVERED"):
        order = svc.update_status(order_id, status)
        assert order["status"] == status

    assert [event for _, _, event in notifications.sent] == [
        "ORDER_PLACED",
        "ORDER_PROCESSING",
        "ORDER_SHIPPED",
        "ORDER_DELIVERED",
    ]


@pytest.mark.parametrize("current", list(ALLOWED_TRANSITIONS))
def test_terminal_states_have_no_way_out(current):
    terminal = current in (OrderStatus.DELIVERED, OrderStatus.CANCELED)
    assert (ALLOWED_TRANSITIONS[current] == set()) is terminal
    if not terminal:
        assert OrderStatus.CANCELED in ALLOWED_TRANSITIONS[current]


def test_delivered_cannot_go_back(db, notifications, placed):
    _, _, order_id = placed
    svc = OrderService(db, notifications)
    for status in ("PROCESSING", "SHIPPED", "DELIVERED"):
        svc.update_status(order_id, status)

    with pytest.raises(InvalidStatusTransition):
        svc.update_status(order_id, "PENDING")
    with pytest.raises(InvalidStatusTransition):
        svc.update_status(order_id, "CANCELED")


def test_cannot_skip_steps(db, notifications, placed):
    _, _, order_id = placed
    with pytest.raises(InvalidStatusTransition):
        OrderService(db, notifications).update_status(order_id, OrderStatus.SHIPPED)


def test_unknown_status_value(db, notifications, placed):
    _, _, order_id = placed
    with pytest.raises(ValueError):
        OrderService(db, notifications).update_status(order_id, "LOST")


def test_cancel_before_shipping_restocks(db, notifications, placed):
    _, variant_id, order_id = placed
    assert _stock_and_sales(db, variant_id) == (3, 2)

    order = OrderService(db, notifications).update_status(order_id, "CANCELED")

    assert order["status"] == "CANCELED"
    assert _stock_and_sales(db, variant_id) == (5, 2)


def test_cancel_after_shipping_keeps_stock(db, notifications, placed):
    _, variant_id, order_id = placed
    svc = OrderService(db, notifications)
    svc.update_status(order_id, "PROCESSING")
    svc.update_status(order_id, "SHIPPED")

    svc.update_status(order_id, "CANCELED")

    assert _stock_and_sales(db, variant_id) == (3, 2)


def test_canceled_is_terminal(db, notifications, placed):
    _, variant_id, order_id = placed
    svc = OrderService(db, notifications)
    svc.update_status(order_id, "CANCELED")

    with pytest.raises(InvalidStatusTransition):
        svc.update_status(order_id, "CANCELED")
    assert _stock_and_sales(db, variant_id) == (5, 2)


def test_order_visibility(db, notifications, placed, make_user):
    user_id, _, order_id = placed
    stranger = make_user("Mallory")
    svc = OrderService(db, notifications)

    assert svc.get_order(order_id, user_id)["order_id"] == order_id
    with pytest.raises(PermissionError):
        svc.get_order(order_id, stranger)
    assert svc.get_order(order_id, stranger, is_admin=True)["user_id"] == user_id
    with pytest.raises(OrderNotFoundError):
        svc.get_order(404, user_id)


def test_list_orders_newest_first(db, notifications, placed, make_variant):
    user_id, _, first_id = placed
    variant_id = make_variant(stock=1)
    cart = CartService(db).add_item(CartOwner.user(user_id), variant_id, 1)
    svc = OrderService(db, notifications)
    second_id = svc.create_order_from_cart(user_id, cart["cart_id"])["order_id"]

    assert [o["order_id"] for o in svc.list_orders(user_id)] == [second_id, first_id]
    assert svc.list_orders(user_id + 100) == []
    assert len(svc.list_orders()) == 2


def test_delete_order_removes_items(db, notifications, placed):
    _, variant_id, order_id = placed
    svc = OrderService(db, notifications)

    svc.delete_order(order_id)

    assert db.execute(select(func.count()).select_from(OrderItemModel)).scalar_one() == 0
    with pytest.raises(OrderNotFoundError):
        svc.delete_order(order_id)
    assert _stock_and_sales(db, variant_id) == (3, 2)
