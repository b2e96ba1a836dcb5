# tests/conftest.py
import os

#configure before anything from storefront is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["LOG_LEVEL"] = "WARNING"

import threading
from contextlib import contextmanager
from decimal import Decimal
from itertools import count
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from storefront.api import create_app
from storefront.api.deps import get_lock_service, get_notification_service
from storefront.data.database import Base, build_engine, get_db
from storefront.data.models import ProductModel, ProductVariantModel, UserModel
from storefront.domain.errors import ConflictError
from storefront.services.lock_service import merge_lock_key


class InProcessLockService:
    """LockService double: same interface, no redis."""

    def __init__(self):
        self.held = set()
        self._mutex = threading.Lock()
        self.acquired = []
        self.redis = MagicMock()

    @contextmanager
    def user_merge_lock(self, user_id, ttl=30, wait=0):
        key = merge_lock_key(user_id)
        with self._mutex:
            if key in self.held:
                raise ConflictError(f"Cart merge already in progress for user {user_id}")
            self.held.add(key)
            self.acquired.append(key)
        try:
            yield "token"
        finally:
            with self._mutex:
                self.held.discard(key)


class RecordingNotifications:
    def __init__(self):
        self.sent = []

    def notify(self, user_id, order_id, event):
        self.sent.append((user_id, order_id, event))
        return True


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'storefront.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def run_concurrently(session_factory):
    """
    Run each call in its own thread with its own session, released together by a barrier.
    Returns "ok" or the exception class name per call, in call order.
    """

    def _run(*calls):
        barrier = threading.Barrier(len(calls))
        outcomes = [None] * len(calls)

        def worker(index, call):
            session = session_factory()
            try:
                barrier.wait(timeout=5)
                call(session)
                outcomes[index] = "ok"
            except Exception as e:
                outcomes[index] = type(e).__name__
            finally:
                session.close()

        threads = [threading.Thread(target=worker, args=(i, c)) for i, c in enumerate(calls)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)
        return outcomes

    return _run


@pytest.fixture
def lock_service():
    return InProcessLockService()


@pytest.fixture
def notifications():
    return RecordingNotifications()


@pytest.fixture
def make_user(db):
    def _make(name="Alice"):
        user = UserModel(name=name)
        db.add(user)
        db.flush()
        user_id = user.id
        db.commit()
        return user_id

    return _make


@pytest.fixture
def make_variant(db):
    skus = count(1)

    def _make(price="10.00", stock=10, product_id=None):
        if product_id is None:
            product = ProductModel(name="Product", sales_count=0)
            db.add(product)
            db.flush()
            product_id = product.id
        variant = ProductVariantModel(
            product_id=product_id,
            sku=f"SKU-{next(skus)}",
            price=Decimal(price),
            stock=stock,
        )
        db.add(variant)
        db.flush()
        variant_id = variant.id
        db.commit()
        return variant_id

    return _make


@pytest.fixture
def client(session_factory, lock_service, notifications):
    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_lock_service] = lambda: lock_service
    app.dependency_overrides[get_notification_service] = lambda: notifications

    with TestClient(app) as c:
        yield c
