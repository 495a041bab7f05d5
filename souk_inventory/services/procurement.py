"""
Procurement service.

Cycle de vie des purchase orders (pending -> received) et orchestration
des événements qui modifient le stock :

    ajustement / réception -> ledger -> décision de réappro -> création PO

Toute opération qui agit sur un entrepôt ouvre UNE transaction et prend
le verrou de l'entrepôt (store.lock_warehouse) avant de lire l'état sur
lequel elle décide. Le calcul de stock reste dans services.inventory,
la décision dans services.reorder.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy.orm import Session

from souk_inventory.app.core.config import ReorderPolicy
from souk_inventory.app.core.errors import (
    AlreadyReceived,
    Conflict,
    InvalidInput,
    InventoryError,
    NotFound,
)
from souk_inventory.app.db.models.core_types import POStatus
from souk_inventory.app.db.models.models_v1 import Product, PurchaseOrder
from souk_inventory.services import inventory, store
from souk_inventory.services.reorder import (
    ProductSnapshot,
    arrival_dates,
    clip_to_capacity,
    decide_reorder,
    needs_reorder,
    resolve_supplier,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReceiptResult:
    order_id: int
    product_id: int
    added_quantity: int
    capacity_limited: bool
    reorder: PurchaseOrder | None = None


@dataclass(frozen=True)
class AdjustmentResult:
    product: Product
    reorder: PurchaseOrder | None = None


def _require_int(value, field: str, *, minimum: int | None = None) -> int:
    # bool est un int en Python : on le refuse explicitement
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput(f"{field} must be an integer")
    if minimum is not None and value < minimum:
        raise InvalidInput(f"{field} must be >= {minimum}")
    return value


# ---------- LIFECYCLE ----------
def create_order(
    db: Session,
    *,
    product_id: int,
    supplier_id: int,
    warehouse_id: int,
    quantity_ordered: int,
    capacity_issue: bool,
    policy: ReorderPolicy,
    today: date | None = None,
) -> PurchaseOrder:
    """
    Crée un PO pending.

    Doit tourner dans une transaction qui tient déjà le verrou de
    l'entrepôt : le test "pas de PO pending" et l'INSERT sont alors
    atomiques. L'index unique partiel couvre le reste (-> Conflict).
    """
    if store.get_supplier(db, supplier_id) is None:
        raise InvalidInput(f"Supplier {supplier_id} does not exist")

    if store.find_pending_order(db, product_id, warehouse_id) is not None:
        logger.info(
            "Pending purchase order already open for product %s in warehouse %s",
            product_id,
            warehouse_id,
        )
        raise Conflict(
            f"A pending purchase order already exists for product {product_id} "
            f"in warehouse {warehouse_id}"
        )

    order_date, expected = arrival_dates(policy, today)
    po = store.insert_order(
        db,
        product_id=product_id,
        supplier_id=supplier_id,
        warehouse_id=warehouse_id,
        quantity_ordered=quantity_ordered,
        capacity_issue=capacity_issue,
        order_date=order_date,
        expected_arrival_date=expected,
    )
    logger.info(
        "Purchase order %s created: product=%s warehouse=%s qty=%s capacity_issue=%s",
        po.id,
        product_id,
        warehouse_id,
        quantity_ordered,
        capacity_issue,
    )
    return po


def _reorder_locked(
    db: Session,
    product: Product,
    policy: ReorderPolicy,
    today: date | None,
) -> PurchaseOrder | None:
    """Décision + création ; l'appelant tient le verrou de l'entrepôt."""
    snapshot = ProductSnapshot.of(product)
    if not needs_reorder(snapshot):
        return None
    if store.find_pending_order(db, snapshot.product_id, snapshot.warehouse_id) is not None:
        return None

    available = inventory.available_space(db, snapshot.warehouse_id)
    request = decide_reorder(snapshot, available, policy, today=today)
    if request is None:
        return None

    if request.capacity_issue:
        logger.warning(
            "Capacity issue for product %s: wanted %s, ordering %s (available=%s)",
            product.sku,
            request.desired_quantity,
            request.quantity_ordered,
            available,
        )

    return create_order(
        db,
        product_id=request.product_id,
        supplier_id=request.supplier_id,
        warehouse_id=request.warehouse_id,
        quantity_ordered=request.quantity_ordered,
        capacity_issue=request.capacity_issue,
        policy=policy,
        today=request.order_date,
    )


def evaluate_and_reorder(
    db: Session,
    product_id: int,
    policy: ReorderPolicy,
    *,
    today: date | None = None,
) -> PurchaseOrder | None:
    """
    Crée un PO si le produit est sous son seuil et n'a aucun PO pending.

    Retourne le PO créé, ou None (pas besoin / déjà en commande).
    """
    with store.atomic(db):
        product = store.require_product(db, product_id)
        store.lock_warehouse(db, product.warehouse_id)
        # relecture sous verrou : l'état a pu bouger entre-temps
        product = store.require_product(db, product_id)
        po = _reorder_locked(db, product, policy, today)
    return po


def receive_order(
    db: Session,
    order_id: int,
    *,
    policy: ReorderPolicy | None = None,
    today: date | None = None,
) -> ReceiptResult:
    """
    Réceptionne un PO pending.

    Règle métier :
        qty_to_add = min(quantity_ordered, max(0, available_space))

    La place est relue au moment de la réception (le stock des autres
    produits a pu changer depuis la création). Une réception partielle ou
    nulle n'est pas une erreur : le PO passe quand même à received et
    capacity_limited le signale.

    Un PO manuel peut viser un autre entrepôt que celui du produit ; le
    stock crédité compte alors dans l'entrepôt du produit. Les deux
    entrepôts sont verrouillés (ordre des ids) et la place retenue est la
    plus petite des deux.
    """
    with store.atomic(db):
        po = store.get_order(db, order_id)
        if po is None:
            raise NotFound(f"Purchase order {order_id} not found")
        if po.status == POStatus.received:
            raise AlreadyReceived(f"Purchase order {order_id} already received")

        product = store.require_product(db, po.product_id)
        warehouse_ids = sorted({int(po.warehouse_id), int(product.warehouse_id)})
        for wid in warehouse_ids:
            store.lock_warehouse(db, wid)

        po = store.get_order(db, order_id)
        if po.status == POStatus.received:
            raise AlreadyReceived(f"Purchase order {order_id} already received")

        available = min(inventory.available_space(db, wid) for wid in warehouse_ids)
        ordered = int(po.quantity_ordered)
        qty_to_add = min(ordered, max(0, available))
        if qty_to_add > 0:
            inventory.apply_delta(db, po.product_id, qty_to_add)

        store.update_order_status(db, po.id, POStatus.received)
        product_id = int(po.product_id)

    capacity_limited = qty_to_add < ordered
    logger.info(
        "Purchase order %s received: added=%s ordered=%s capacity_limited=%s",
        order_id,
        qty_to_add,
        ordered,
        capacity_limited,
    )

    # la réception est un mouvement de stock comme un autre. Elle est déjà
    # commitée : un échec du réappro est journalisé, pas propagé.
    reorder = None
    if policy is not None:
        try:
            reorder = evaluate_and_reorder(db, product_id, policy, today=today)
        except InventoryError as exc:
            logger.warning(
                "Reorder after receipt of purchase order %s failed: %s",
                order_id,
                exc.message,
            )

    return ReceiptResult(
        order_id=order_id,
        product_id=product_id,
        added_quantity=qty_to_add,
        capacity_limited=capacity_limited,
        reorder=reorder,
    )


def create_manual_order(
    db: Session,
    *,
    product_id: int,
    quantity_ordered: int,
    supplier_id: int | None = None,
    warehouse_id: int | None = None,
    policy: ReorderPolicy,
    today: date | None = None,
) -> PurchaseOrder:
    """
    Saisie manuelle : pas de test de seuil, mais même écrêtage capacité
    et même règle "un seul PO pending par (produit, entrepôt)".
    """
    _require_int(product_id, "product_id")
    _require_int(quantity_ordered, "quantity_ordered", minimum=0)

    with store.atomic(db):
        product = store.require_product(db, product_id)
        supplier = resolve_supplier(supplier_id or product.default_supplier_id, policy)
        target_warehouse = int(warehouse_id or product.warehouse_id)

        store.lock_warehouse(db, target_warehouse)
        available = inventory.available_space(db, target_warehouse)
        qty, capacity_issue = clip_to_capacity(quantity_ordered, available)

        po = create_order(
            db,
            product_id=int(product.id),
            supplier_id=supplier,
            warehouse_id=target_warehouse,
            quantity_ordered=qty,
            capacity_issue=capacity_issue,
            policy=policy,
            today=today,
        )
    return po


# ---------- STOCK EVENTS ----------
def adjust_stock(
    db: Session,
    product_id: int,
    delta: int,
    reason: str | None = None,
    *,
    policy: ReorderPolicy,
    today: date | None = None,
) -> AdjustmentResult:
    """
    Vente (delta < 0) ou ajustement manuel (delta > 0), puis réappro
    éventuel dans la même transaction.
    """
    _require_int(delta, "delta")

    with store.atomic(db):
        product = store.require_product(db, product_id)
        store.lock_warehouse(db, product.warehouse_id)
        inventory.apply_delta(db, product_id, delta)
        product = store.require_product(db, product_id)

        logger.info(
            "Stock adjusted for product %s: delta=%s, reason=%s",
            product.sku,
            delta,
            reason or "N/A",
        )
        reorder = _reorder_locked(db, product, policy, today)

    return AdjustmentResult(product=product, reorder=reorder)


# ---------- READ PATH ----------
def get_product(
    db: Session,
    product_id: int,
    *,
    policy: ReorderPolicy,
    evaluate: bool = True,
    today: date | None = None,
) -> tuple[Product, str | None, str | None]:
    row = store.get_product_with_joins(db, product_id)
    if row is None:
        raise NotFound(f"Product {product_id} not found")

    if evaluate:
        product = row[0]
        if needs_reorder(ProductSnapshot.of(product)) and (
            store.find_pending_order(db, product.id, product.warehouse_id) is None
        ):
            evaluate_and_reorder(db, product_id, policy, today=today)
            row = store.get_product_with_joins(db, product_id)
    return row


def list_products(
    db: Session,
    *,
    policy: ReorderPolicy,
    evaluate: bool = True,
    today: date | None = None,
) -> list[tuple[Product, str | None, str | None]]:
    rows = store.list_products_with_joins(db)
    if not evaluate:
        return rows

    pending = store.pending_keys(db)
    candidates = [
        int(p.id)
        for p, _, _ in rows
        if needs_reorder(ProductSnapshot.of(p)) and (int(p.id), int(p.warehouse_id)) not in pending
    ]
    if not candidates:
        return rows

    for pid in candidates:
        evaluate_and_reorder(db, pid, policy, today=today)
    return store.list_products_with_joins(db)


def list_orders(db: Session):
    return store.list_orders_with_joins(db)
