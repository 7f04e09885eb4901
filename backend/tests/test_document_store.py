import pytest

from electrosense.models.order import Order
from electrosense.models.product import Product
from electrosense.schemas.order_schema import OrderRecord, OrderStatus
from electrosense.utils.transactions import DocumentNotFound, TransactionAborted, TransactionOrderError


def test_get_missing_document_returns_none(store):
    assert store.get("products", "nope") is None


def test_unknown_collection_is_rejected(store):
    with pytest.raises(ValueError):
        store.get("widgets", "x")


def test_transaction_commits_all_writes(store, make_product):
    a = make_product(name="Resistor Kit", stock=4)
    b = make_product(name="LED Pack", stock=9)

    def _move(tx):
        pa = tx.get("products", a.id)
        pb = tx.get("products", b.id)
        tx.update("products", a.id, {"stock_quantity": pa.stock_quantity - 1})
        tx.update("products", b.id, {"stock_quantity": pb.stock_quantity + 1})
        return "done"

    assert store.transaction(_move) == "done"
    assert store.get("products", a.id).stock_quantity == 3
    assert store.get("products", b.id).stock_quantity == 10


def test_exception_in_callback_rolls_back(store, make_product):
    p = make_product(stock=4)

    def _fail(tx):
        tx.get("products", p.id)
        tx.update("products", p.id, {"stock_quantity": 0})
        raise KeyError("boom")

    with pytest.raises(KeyError):
        store.transaction(_fail)
    assert store.get("products", p.id).stock_quantity == 4


def test_read_after_write_is_refused(store, make_product):
    p = make_product(stock=4)
    q = make_product(name="Breadboard", stock=2)

    def _bad_order(tx):
        tx.update("products", p.id, {"stock_quantity": 1})
        tx.get("products", q.id)

    with pytest.raises(TransactionOrderError):
        store.transaction(_bad_order)
    assert store.get("products", p.id).stock_quantity == 4


def test_update_of_missing_document_raises(store):
    with pytest.raises(DocumentNotFound):
        store.transaction(lambda tx: tx.update("orders", "ORD-MISSING", {"status": "Shipped"}))


def test_concurrent_change_aborts_stale_transaction(store, make_product):
    p = make_product(stock=5)

    def _stale(tx):
        seen = tx.get("products", p.id)
        # someone else commits in between our read and our write
        store.transaction(lambda other: other.update("products", p.id, {"stock_quantity": 1}))
        tx.update("products", p.id, {"stock_quantity": seen.stock_quantity - 2})

    with pytest.raises(TransactionAborted):
        store.transaction(_stale)
    assert store.get("products", p.id).stock_quantity == 1


def test_query_filters_and_ordering(store, make_product):
    make_product(name="Servo Motor", category="Motors", stock=3)
    make_product(name="Stepper Motor", category="Motors", stock=0)
    make_product(name="ESP32", category="Microcontrollers", stock=8)

    motors = store.query("products", filters=[("category", "==", "Motors")], order_by="name")
    assert [m.name for m in motors] == ["Servo Motor", "Stepper Motor"]

    stocked = store.query("products", filters=[("stock_quantity", ">", 0)], order_by="name", descending=True)
    assert [s.name for s in stocked] == ["Servo Motor", "ESP32"]

    assert len(store.query("products", limit=1)) == 1

    with pytest.raises(ValueError):
        store.query("products", filters=[("stock_quantity", "~", 0)])
    with pytest.raises(ValueError):
        store.query("products", order_by="version")


def test_legacy_product_row_is_read_with_image_list(session_factory, store):
    with session_factory() as db:
        db.add(Product(id="legacy-1", sku="OLD0001", name="Old Sensor", price=100, stock_quantity=2, image="http://img/old.png"))
        db.commit()

    p = store.get("products", "legacy-1")
    assert p.image_urls == ["http://img/old.png"]
    assert p.primary_image == "http://img/old.png"
    assert p.tags == []
    assert p.description == ""

    # rewriting the document drops the legacy field
    store.transaction(lambda tx: tx.set("products", p.id, p))
    with session_factory() as db:
        assert db.get(Product, "legacy-1").image is None


def test_legacy_order_document_defaults():
    order = OrderRecord.from_document(
        {
            "id": "ORD-1",
            "userId": "u1",
            "items": [{"id": "p1", "name": "Relay", "price": 150, "quantity": 2, "imageUrls": ["a.png"]}],
            "total": 800,
            "status": "Pending",
        }
    )
    assert order.stock_updated is False
    assert order.user_email == ""
    assert order.items[0].product_id == "p1"
    assert order.items[0].image_url == "a.png"
    assert order.status is OrderStatus.PENDING


def test_order_lines_survive_round_trip(store, make_product, make_order, session_factory):
    p = make_product()
    order = make_order([(p, 2)])
    loaded = store.get("orders", order.id)
    assert loaded.items == order.items
    with session_factory() as db:
        assert len(db.get(Order, order.id).lines) == 1

    assert store.transaction(lambda tx: tx.delete("orders", order.id)) is True
    assert store.get("orders", order.id) is None
