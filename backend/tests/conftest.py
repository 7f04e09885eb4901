from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from electrosense.api.deps import get_hub, get_store
from electrosense.db import get_db, init_db, make_engine, make_session_factory
from electrosense.main import app
from electrosense.repositories.document_store import DocumentStore, new_id
from electrosense.schemas.category_schema import CategoryRecord
from electrosense.schemas.order_schema import LineItem, OrderRecord, OrderStatus
from electrosense.schemas.product_schema import ProductRecord
from electrosense.schemas.user_schema import UserRecord, UserRole
from electrosense.services.subscriptions import SubscriptionHub

ADMIN = {"X-User-Id": "admin-1", "X-User-Email": "admin@electrosense.lk", "X-User-Role": "admin"}
CUSTOMER = {"X-User-Id": "cust-1", "X-User-Email": "nimal@example.com"}


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'shop.db'}")
    init_db(bind=eng, reset=False)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def store(session_factory):
    return DocumentStore(session_factory)


@pytest.fixture
def hub(store):
    h = SubscriptionHub(store, interval_seconds=0.05)
    h.start()
    yield h
    h.shutdown()


@pytest.fixture
def client(session_factory, store, hub):
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_hub] = lambda: hub
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_product(store):
    def _make(name="Arduino Uno R3", stock=10, price="2500.00", category="Microcontrollers", sku=None, **extra):
        record = ProductRecord(
            id=new_id(),
            name=name,
            sku=sku or f"TST{new_id()[:8].upper()}",
            price=Decimal(price),
            stock_quantity=stock,
            category=category,
            created_at=datetime.now(timezone.utc),
            **extra,
        )
        store.transaction(lambda tx: tx.set("products", record.id, record))
        return record

    return _make


@pytest.fixture
def make_category(store):
    def _make(name="Microcontrollers", sku_prefix="MICR", icon="cpu"):
        record = CategoryRecord(id=new_id(), name=name, sku_prefix=sku_prefix, icon=icon)
        store.transaction(lambda tx: tx.set("categories", record.id, record))
        return record

    return _make


@pytest.fixture
def make_order(store):
    def _make(lines, status=OrderStatus.PENDING, stock_updated=False, user_id="cust-1"):
        items = [
            LineItem(product_id=p.id, name=p.name, price=p.price, quantity=qty) for p, qty in lines
        ]
        order = OrderRecord(
            id=f"ORD-{new_id()[:12].upper()}",
            user_id=user_id,
            user_name="Nimal Perera",
            user_email="nimal@example.com",
            phone="0771234567",
            address="12 Temple Rd, Malabe",
            items=items,
            total=sum((i.line_total for i in items), Decimal("500.00")),
            status=status,
            stock_updated=stock_updated,
            created_at=datetime.now(timezone.utc),
        )
        store.transaction(lambda tx: tx.set("orders", order.id, order))
        return order

    return _make


def stock_of(store, product_id):
    return store.get("products", product_id).stock_quantity


@pytest.fixture
def make_user(store):
    def _make(uid="cust-1", email="nimal@example.com", name="Nimal Perera", role=UserRole.CUSTOMER):
        record = UserRecord(
            id=uid,
            name=name,
            email=email,
            role=role,
            is_admin=role == UserRole.ADMIN,
            created_at=datetime.now(timezone.utc),
        )
        store.transaction(lambda tx: tx.set("users", record.id, record))
        return record

    return _make
