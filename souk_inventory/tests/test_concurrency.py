"""
Concurrence réelle : un thread = une session = une connexion.

Les ids sont extraits avant la fermeture de chaque session (objets
détachés ensuite).
"""

import threading
from concurrent.futures import ThreadPoolExecutor

from sqlalchemy import func, select

from souk_inventory.app.core.errors import Conflict, InvalidState
from souk_inventory.app.db.models.core_types import POStatus
from souk_inventory.app.db.models.models_v1 import Product, PurchaseOrder
from souk_inventory.services import procurement

WORKERS = 8


def _run_concurrently(session_factory, n, fn):
    """Lance n appels de fn(session, i) en parallèle, retourne les résultats ou exceptions."""
    barrier = threading.Barrier(n)

    def worker(i):
        db = session_factory()
        try:
            barrier.wait()
            return fn(db, i)
        except (Conflict, InvalidState) as exc:
            return exc
        finally:
            db.close()

    with ThreadPoolExecutor(max_workers=n) as pool:
        return list(pool.map(worker, range(n)))


def _pending_count(session_factory, product_id):
    with session_factory() as db:
        return db.scalar(
            select(func.count())
            .select_from(PurchaseOrder)
            .where(PurchaseOrder.product_id == product_id)
            .where(PurchaseOrder.status == POStatus.pending)
        )


def test_concurrent_low_stock_events_create_a_single_order(session_factory, build, policy):
    wid = build.warehouse(capacity=100)
    pid = build.product(wid, qty=2, threshold=10)

    def evaluate(db, i):
        po = procurement.evaluate_and_reorder(db, pid, policy)
        return None if po is None else int(po.id)

    results = _run_concurrently(session_factory, WORKERS, evaluate)

    assert sum(isinstance(r, int) for r in results) == 1
    assert results.count(None) == WORKERS - 1
    assert _pending_count(session_factory, pid) == 1


def test_concurrent_manual_orders_conflict(session_factory, build, policy):
    wid = build.warehouse(capacity=100)
    pid = build.product(wid, qty=0, threshold=0)

    def order(db, i):
        return int(procurement.create_manual_order(db, product_id=pid, quantity_ordered=5, policy=policy).id)

    results = _run_concurrently(session_factory, WORKERS, order)

    assert sum(isinstance(r, int) for r in results) == 1
    assert sum(isinstance(r, Conflict) for r in results) == WORKERS - 1
    assert _pending_count(session_factory, pid) == 1


def test_concurrent_sales_never_drive_stock_negative(session_factory, build, policy):
    wid = build.warehouse(capacity=100)
    pid = build.product(wid, qty=10, threshold=0)

    def sell(db, i):
        return int(procurement.adjust_stock(db, pid, -1, "sale", policy=policy).product.quantity_in_stock)

    results = _run_concurrently(session_factory, 15, sell)

    assert sum(isinstance(r, int) for r in results) == 10
    assert sum(isinstance(r, InvalidState) for r in results) == 5
    with session_factory() as db:
        assert db.get(Product, pid).quantity_in_stock == 0


def test_concurrent_receipts_never_exceed_capacity(session_factory, build, policy):
    """
    GIVEN 5 PO de 20 dans un entrepôt de 50 (chacun voyait 50 de place)
    THEN  la somme reçue == 50, jamais au-delà de la capacité
    """
    wid = build.warehouse(capacity=50)
    product_ids = [build.product(wid, qty=0, threshold=0) for _ in range(5)]

    order_ids = []
    with session_factory() as db:
        for pid in product_ids:
            po = procurement.create_manual_order(db, product_id=pid, quantity_ordered=20, policy=policy)
            assert po.capacity_issue is False
            order_ids.append(int(po.id))

    def receive(db, i):
        return procurement.receive_order(db, order_ids[i]).added_quantity

    added = _run_concurrently(session_factory, len(order_ids), receive)

    assert sum(added) == 50
    with session_factory() as db:
        total = db.scalar(select(func.sum(Product.quantity_in_stock)).where(Product.warehouse_id == wid))
        statuses = db.scalars(select(PurchaseOrder.status).where(PurchaseOrder.id.in_(order_ids))).all()
    assert total == 50
    assert set(statuses) == {POStatus.received}
