import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from storefront.data.models import CartItemModel, CartModel
from storefront.domain.errors import ConflictError, TransactionAbortedError, UserNotFoundError
from storefront.domain.ownership import CartOwner
from storefront.services.cart_merge_service import CartMergeService
from storefront.services.cart_service import CartService
from storefront.services.lock_service import merge_lock_key


def _quantities(cart):
    return {i["variant_id"]: i["quantity"] for i in cart["items"]}


def _cart_count(db):
    return db.execute(select(func.count()).select_from(CartModel)).scalar_one()


def test_merge_coalesces_same_variant(db, lock_service, make_user, make_variant):
    user_id = make_user()
    v = make_variant(stock=10)
    carts = CartService(db)
    carts.add_item(CartOwner.session("sess-1"), v, 2)
    carts.add_item(CartOwner.user(user_id), v, 3)

    merged = CartMergeService(db, lock_service).merge("sess-1", user_id)

    assert _quantities(merged) == {v: 5}
    rows = db.execute(
        select(func.count()).select_from(CartItemModel).where(CartItemModel.variant_id == v)
    ).scalar_one()
    assert rows == 1
    assert carts.get_cart(CartOwner.session("sess-1")) is None
    assert lock_service.acquired == [merge_lock_key(user_id)]


def test_merge_moves_items_user_did_not_have(db, lock_service, make_user, make_variant):
    user_id = make_user()
    v1 = make_variant()
    v2 = make_variant()
    carts = CartService(db)
    carts.add_item(CartOwner.session("sess-1"), v1, 1)
    carts.add_item(CartOwner.session("sess-1"), v2, 4)
    carts.add_item(CartOwner.user(user_id), v1, 1)

    merged = CartMergeService(db, lock_service).merge("sess-1", user_id)

    assert _quantities(merged) == {v1: 2, v2: 4}
    assert merged["owner_key"] == str(user_id)
    assert _cart_count(db) == 1


def test_merge_creates_user_cart_when_missing(db, lock_service, make_user, make_variant):
    user_id = make_user()
    v = make_variant()
    CartService(db).add_item(CartOwner.session("sess-1"), v, 2)

    merged = CartMergeService(db, lock_service).merge("sess-1", user_id)

    assert merged["owner_type"] == "USER"
    assert merged["expires_at"] is None
    assert _quantities(merged) == {v: 2}


def test_merge_is_idempotent(db, lock_service, make_user, make_variant):
    user_id = make_user()
    v = make_variant()
    CartService(db).add_item(CartOwner.session("sess-1"), v, 2)
    svc = CartMergeService(db, lock_service)

    first = svc.merge("sess-1", user_id)
    second = svc.merge("sess-1", user_id)

    assert second == first
    assert _quantities(second) == {v: 2}


def test_merge_without_guest_session(db, lock_service, make_user):
    user_id = make_user()

    merged = CartMergeService(db, lock_service).merge(None, user_id)

    assert merged["items"] == []
    assert _cart_count(db) == 1


def test_merged_guest_cart_cannot_be_merged_into_another_user(db, lock_service, make_user, make_variant):
    alice = make_user("Alice")
    bob = make_user("Bob")
    v = make_variant()
    CartService(db).add_item(CartOwner.session("sess-1"), v, 2)
    svc = CartMergeService(db, lock_service)

    svc.merge("sess-1", alice)
    bobs = svc.merge("sess-1", bob)

    assert bobs["items"] == []


def test_merge_for_unknown_user_leaves_guest_cart(db, lock_service, make_variant):
    v = make_variant()
    carts = CartService(db)
    carts.add_item(CartOwner.session("sess-1"), v, 2)

    with pytest.raises(UserNotFoundError):
        CartMergeService(db, lock_service).merge("sess-1", 999)

    assert _quantities(carts.get_cart(CartOwner.session("sess-1"))) == {v: 2}


def test_concurrent_merge_for_same_user_is_refused(db, lock_service, make_user, make_variant):
    user_id = make_user()
    v = make_variant()
    carts = CartService(db)
    carts.add_item(CartOwner.session("sess-1"), v, 2)
    lock_service.held.add(merge_lock_key(user_id))

    with pytest.raises(ConflictError):
        CartMergeService(db, lock_service).merge("sess-1", user_id)

    assert _quantities(carts.get_cart(CartOwner.session("sess-1"))) == {v: 2}
    assert carts.get_cart(CartOwner.user(user_id)) is None


def test_simultaneous_merges_count_guest_items_once(db, lock_service, make_user, make_variant, run_concurrently):
    user_id = make_user()
    v = make_variant(stock=10)
    carts = CartService(db)
    carts.add_item(CartOwner.session("sess-1"), v, 2)
    carts.add_item(CartOwner.user(user_id), v, 3)
    db.rollback()

    outcomes = run_concurrently(
        lambda session: CartMergeService(session, lock_service).merge("sess-1", user_id),
        lambda session: CartMergeService(session, lock_service).merge("sess-1", user_id),
    )

    #the second merge either runs after the first and finds no guest cart, or is refused
    assert "ok" in outcomes
    assert set(outcomes) <= {"ok", "ConflictError"}
    db.expire_all()
    assert _quantities(carts.get_cart(CartOwner.user(user_id))) == {v: 5}
    assert carts.get_cart(CartOwner.session("sess-1")) is None
    assert _cart_count(db) == 1
    assert db.execute(select(func.count()).select_from(CartItemModel)).scalar_one() == 1


def test_failed_merge_rolls_back_everything(db, lock_service, make_user, make_variant, monkeypatch):
    user_id = make_user()
    v1 = make_variant()
    v2 = make_variant()
    carts = CartService(db)
    carts.add_item(CartOwner.session("sess-1"), v1, 2)
    carts.add_item(CartOwner.session("sess-1"), v2, 1)
    carts.add_item(CartOwner.user(user_id), v1, 3)
    svc = CartMergeService(db, lock_service)

    def broken_delete(*args, **kwargs):
        raise OperationalError("DELETE FROM carts", {}, Exception("disk I/O error"))

    monkeypatch.setattr(svc.repo, "delete_cart", broken_delete)

    with pytest.raises(TransactionAbortedError):
        svc.merge("sess-1", user_id)

    assert _quantities(carts.get_cart(CartOwner.session("sess-1"))) == {v1: 2, v2: 1}
    assert _quantities(carts.get_cart(CartOwner.user(user_id))) == {v1: 3}
    assert lock_service.held == set()
