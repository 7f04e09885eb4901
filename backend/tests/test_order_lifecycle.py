import threading

import pytest

from conftest import stock_of
from electrosense.schemas.order_schema import OrderStatus
from electrosense.services.inventory_service import InsufficientStock, ProductNotFound
from electrosense.services.order_lifecycle import (
    OrderLifecycleService,
    TransitionAction,
    classify_transition,
)
from electrosense.services.order_service import OrderNotFound
from electrosense.utils.transactions import TransactionAborted

S = OrderStatus


@pytest.mark.parametrize(
    "status,flag,target,expected",
    [
        (S.PENDING, False, S.PENDING, TransitionAction.NOOP),
        (S.PENDING, False, S.PROCESSING, TransitionAction.RESERVE),
        (S.PENDING, False, S.SHIPPED, TransitionAction.RESERVE),
        (S.PENDING, False, S.COMPLETED, TransitionAction.RESERVE),
        (S.PENDING, False, S.CANCELLED, TransitionAction.RELABEL),
        (S.PROCESSING, True, S.SHIPPED, TransitionAction.RELABEL),
        (S.PROCESSING, True, S.PENDING, TransitionAction.RELABEL),
        (S.SHIPPED, True, S.CANCELLED, TransitionAction.RELEASE),
        (S.CANCELLED, False, S.PROCESSING, TransitionAction.RESERVE),
        (S.CANCELLED, False, S.PENDING, TransitionAction.RELABEL),
    ],
)
def test_classify_transition(status, flag, target, expected):
    assert classify_transition(status, flag, target) is expected


def test_pending_to_processing_reserves_stock(store, make_product, make_order):
    p1 = make_product(name="P1", stock=5)
    order = make_order([(p1, 5)])

    result = OrderLifecycleService(store).apply_status_change(order, "Processing")

    assert result.action is TransitionAction.RESERVE
    assert stock_of(store, p1.id) == 0
    saved = store.get("orders", order.id)
    assert saved.status is S.PROCESSING
    assert saved.stock_updated is True
    assert result.order.status is S.PROCESSING
    assert result.order.stock_updated is True


def test_cancelling_a_reserved_order_restores_stock(store, make_product, make_order):
    p1 = make_product(name="P1", stock=5)
    order = make_order([(p1, 5)])
    engine = OrderLifecycleService(store)

    processing = engine.apply_status_change(order, S.PROCESSING).order
    result = engine.apply_status_change(processing, S.CANCELLED)

    assert result.action is TransitionAction.RELEASE
    assert stock_of(store, p1.id) == 5
    saved = store.get("orders", order.id)
    assert saved.status is S.CANCELLED
    assert saved.stock_updated is False


def test_insufficient_stock_keeps_order_pending(store, make_product, make_order):
    p2 = make_product(name="P2", stock=2)
    order = make_order([(p2, 3)])

    with pytest.raises(InsufficientStock):
        OrderLifecycleService(store).apply_status_change(order, S.PROCESSING)

    assert stock_of(store, p2.id) == 2
    saved = store.get("orders", order.id)
    assert saved.status is S.PENDING
    assert saved.stock_updated is False


def test_shipping_a_processing_order_moves_no_stock(store, make_product, make_order):
    p1 = make_product(stock=7)
    order = make_order([(p1, 2)], status=S.PROCESSING, stock_updated=True)

    result = OrderLifecycleService(store).apply_status_change(order, S.SHIPPED)

    assert result.action is TransitionAction.RELABEL
    assert stock_of(store, p1.id) == 7
    saved = store.get("orders", order.id)
    assert saved.status is S.SHIPPED
    assert saved.stock_updated is True


def test_cancelling_a_pending_order_is_a_plain_relabel(store, make_product, make_order):
    p1 = make_product(stock=7)
    order = make_order([(p1, 2)])

    result = OrderLifecycleService(store).apply_status_change(order, S.CANCELLED)

    assert result.action is TransitionAction.RELABEL
    assert stock_of(store, p1.id) == 7
    saved = store.get("orders", order.id)
    assert saved.status is S.CANCELLED
    assert saved.stock_updated is False


def test_same_status_touches_nothing(store, make_product, make_order, monkeypatch):
    p1 = make_product(stock=7)
    order = make_order([(p1, 2)], status=S.PROCESSING, stock_updated=True)
    calls = []
    monkeypatch.setattr(store, "transaction", lambda cb: calls.append(cb))

    result = OrderLifecycleService(store).apply_status_change(order, "Processing")

    assert result.action is TransitionAction.NOOP
    assert result.order is order
    assert calls == []


def test_stale_snapshot_cannot_reserve_twice(store, make_product, make_order):
    p1 = make_product(stock=10)
    order = make_order([(p1, 3)])
    engine = OrderLifecycleService(store)

    engine.apply_status_change(order, S.PROCESSING)
    # `order` still says Pending / not reserved
    result = engine.apply_status_change(order, S.SHIPPED)

    assert result.action is TransitionAction.RELABEL
    assert stock_of(store, p1.id) == 7
    assert store.get("orders", order.id).stock_updated is True


def test_reserve_release_symmetry(store, make_product, make_order):
    a = make_product(name="Jumper Wires", stock=20)
    b = make_product(name="Buzzer", stock=4)
    order = make_order([(a, 6), (b, 4)])
    engine = OrderLifecycleService(store)

    current = engine.apply_status_change(order, S.PROCESSING).order
    current = engine.apply_status_change(current, S.CANCELLED).order
    current = engine.apply_status_change(current, S.PROCESSING).order

    assert (stock_of(store, a.id), stock_of(store, b.id)) == (14, 0)
    engine.apply_status_change(current, S.CANCELLED)
    assert (stock_of(store, a.id), stock_of(store, b.id)) == (20, 4)


def test_failure_on_second_line_writes_nothing(store, make_product, make_order):
    a = make_product(name="Jumper Wires", stock=20)
    b = make_product(name="Buzzer", stock=1)
    order = make_order([(a, 6), (b, 4)])

    with pytest.raises(InsufficientStock):
        OrderLifecycleService(store).apply_status_change(order, S.COMPLETED)

    assert stock_of(store, a.id) == 20
    assert store.get("orders", order.id).status is S.PENDING


def test_deleted_product_blocks_reservation(store, make_product, make_order):
    a = make_product(stock=20)
    order = make_order([(a, 1)])
    store.transaction(lambda tx: tx.delete("products", a.id))

    with pytest.raises(ProductNotFound):
        OrderLifecycleService(store).apply_status_change(order, S.PROCESSING)
    assert store.get("orders", order.id).status is S.PENDING


def test_deleted_product_is_skipped_on_cancel(store, make_product, make_order):
    a = make_product(stock=20)
    b = make_product(name="Buzzer", stock=4)
    order = make_order([(a, 2), (b, 1)])
    engine = OrderLifecycleService(store)
    current = engine.apply_status_change(order, S.PROCESSING).order
    store.transaction(lambda tx: tx.delete("products", b.id))

    result = engine.apply_status_change(current, S.CANCELLED)

    assert result.unrestored == [b.id]
    assert stock_of(store, a.id) == 20
    saved = store.get("orders", order.id)
    assert saved.status is S.CANCELLED
    assert saved.stock_updated is False


def test_missing_order(store, make_product, make_order):
    a = make_product(stock=20)
    order = make_order([(a, 1)])
    store.transaction(lambda tx: tx.delete("orders", order.id))

    with pytest.raises(OrderNotFound):
        OrderLifecycleService(store).apply_status_change(order, S.PROCESSING)
    assert stock_of(store, a.id) == 20


def test_concurrent_orders_never_oversell(store, make_product, make_order):
    p = make_product(stock=5)
    orders = [make_order([(p, 3)]) for _ in range(4)]
    engine = OrderLifecycleService(store)
    outcomes = []
    barrier = threading.Barrier(len(orders))

    def _process(order):
        barrier.wait()
        try:
            engine.apply_status_change(order, S.PROCESSING)
            outcomes.append("ok")
        except (InsufficientStock, TransactionAborted) as e:
            outcomes.append(type(e).__name__)

    threads = [threading.Thread(target=_process, args=(o,)) for o in orders]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("ok") == 1
    assert len(outcomes) == 4
    assert stock_of(store, p.id) == 2
    reserved = [store.get("orders", o.id) for o in orders]
    assert sum(1 for o in reserved if o.stock_updated) == 1
    assert all(o.status is S.PENDING for o in reserved if not o.stock_updated)
