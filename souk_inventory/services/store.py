"""
Accès au store relationnel.

Toutes les fonctions prennent une Session explicite : pas de connexion
globale, on peut brancher une autre base (SQLite de test, PostgreSQL).
Aucune ne commit : la transaction appartient à l'appelant (voir atomic()).
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from sqlalchemy import select, func, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from souk_inventory.app.core.errors import Conflict, InventoryError, NotFound, StorageError
from souk_inventory.app.db.models.core_types import POStatus
from souk_inventory.app.db.models.models_v1 import (
    Product,
    PurchaseOrder,
    Supplier,
    Warehouse,
)

logger = logging.getLogger(__name__)


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    Unité de travail tout-ou-rien.

    - commit si le bloc se termine normalement
    - rollback sur erreur métier (ré-levée telle quelle)
    - rollback sur erreur SQLAlchemy, ré-levée en StorageError
    """
    try:
        yield db
        db.commit()
    except InventoryError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Storage failure, transaction rolled back: %s", exc)
        raise StorageError(str(exc)) from exc


# ---------- PRODUCTS ----------
def get_product(db: Session, product_id: int) -> Product | None:
    # populate_existing : relit la ligne même si l'objet est déjà en session
    return db.execute(
        select(Product)
        .where(Product.id == product_id)
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()


def require_product(db: Session, product_id: int) -> Product:
    product = get_product(db, product_id)
    if product is None:
        raise NotFound(f"Product {product_id} not found")
    return product


def _products_with_joins_stmt():
    return (
        select(
            Product,
            Supplier.name.label("supplier_name"),
            Warehouse.name.label("warehouse_name"),
        )
        .outerjoin(Supplier, Supplier.id == Product.default_supplier_id)
        .outerjoin(Warehouse, Warehouse.id == Product.warehouse_id)
        .execution_options(populate_existing=True)
    )


def list_products_with_joins(db: Session) -> list[tuple[Product, str | None, str | None]]:
    rows = db.execute(_products_with_joins_stmt().order_by(Product.id)).all()
    return [(p, supplier_name, warehouse_name) for p, supplier_name, warehouse_name in rows]


def get_product_with_joins(db: Session, product_id: int) -> tuple[Product, str | None, str | None] | None:
    row = db.execute(_products_with_joins_stmt().where(Product.id == product_id)).first()
    if row is None:
        return None
    p, supplier_name, warehouse_name = row
    return p, supplier_name, warehouse_name


def update_product_stock(db: Session, product_id: int, new_quantity: int) -> None:
    """Écriture absolue ; le ledger lui préfère increment_product_stock."""
    db.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(quantity_in_stock=new_quantity)
        .execution_options(synchronize_session=False)
    )


def increment_product_stock(db: Session, product_id: int, delta: int) -> bool:
    """
    quantity = quantity + delta, en un seul UPDATE conditionnel.
    Retourne False si aucune ligne touchée (produit absent ou stock < 0).
    """
    result = db.execute(
        update(Product)
        .where(Product.id == product_id)
        .where(Product.quantity_in_stock + delta >= 0)
        .values(quantity_in_stock=Product.quantity_in_stock + delta)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def read_product_stock(db: Session, product_id: int) -> int | None:
    return db.execute(
        select(Product.quantity_in_stock).where(Product.id == product_id)
    ).scalar_one_or_none()


# ---------- WAREHOUSES ----------
def get_warehouse(db: Session, warehouse_id: int) -> Warehouse | None:
    return db.execute(
        select(Warehouse)
        .where(Warehouse.id == warehouse_id)
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()


def lock_warehouse(db: Session, warehouse_id: int) -> Warehouse:
    """
    Verrou exclusif sur l'entrepôt (FOR UPDATE) pour toute la transaction.
    Sérialise capacité / PO pending / crédit stock par entrepôt.
    Sur SQLite la clause est ignorée (BEGIN IMMEDIATE côté session).
    """
    wh = db.execute(
        select(Warehouse)
        .where(Warehouse.id == warehouse_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if wh is None:
        raise NotFound(f"Warehouse {warehouse_id} not found")
    return wh


def sum_stock_by_warehouse(db: Session, warehouse_id: int) -> int:
    total = db.execute(
        select(func.coalesce(func.sum(Product.quantity_in_stock), 0))
        .where(Product.warehouse_id == warehouse_id)
    ).scalar_one()
    return int(total)


def list_warehouses_with_stock(db: Session) -> list[tuple[Warehouse, int]]:
    stock = (
        select(
            Product.warehouse_id.label("warehouse_id"),
            func.sum(Product.quantity_in_stock).label("total"),
        )
        .group_by(Product.warehouse_id)
        .subquery()
    )
    rows = db.execute(
        select(Warehouse, func.coalesce(stock.c.total, 0))
        .outerjoin(stock, stock.c.warehouse_id == Warehouse.id)
        .order_by(Warehouse.id)
    ).all()
    return [(wh, int(total)) for wh, total in rows]


# ---------- SUPPLIERS ----------
def get_supplier(db: Session, supplier_id: int) -> Supplier | None:
    return db.get(Supplier, supplier_id)


# ---------- PURCHASE ORDERS ----------
def get_order(db: Session, order_id: int) -> PurchaseOrder | None:
    return db.execute(
        select(PurchaseOrder)
        .where(PurchaseOrder.id == order_id)
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()


def find_pending_order(db: Session, product_id: int, warehouse_id: int) -> PurchaseOrder | None:
    return db.execute(
        select(PurchaseOrder)
        .where(PurchaseOrder.product_id == product_id)
        .where(PurchaseOrder.warehouse_id == warehouse_id)
        .where(PurchaseOrder.status == POStatus.pending)
    ).scalar_one_or_none()


def pending_keys(db: Session) -> set[tuple[int, int]]:
    """(product_id, warehouse_id) ayant déjà un PO pending."""
    rows = db.execute(
        select(PurchaseOrder.product_id, PurchaseOrder.warehouse_id)
        .where(PurchaseOrder.status == POStatus.pending)
    ).all()
    return {(int(pid), int(wid)) for pid, wid in rows}


def insert_order(db: Session, **fields) -> PurchaseOrder:
    po = PurchaseOrder(status=POStatus.pending, **fields)
    db.add(po)
    # filet de sécurité : l'index unique partiel sur les PO pending
    try:
        db.flush()
    except IntegrityError as exc:
        if not _is_pending_uniqueness_violation(exc):
            raise
        raise Conflict(
            f"A pending purchase order already exists for product {fields.get('product_id')} "
            f"in warehouse {fields.get('warehouse_id')}"
        ) from exc
    return po


def _is_pending_uniqueness_violation(exc: IntegrityError) -> bool:
    msg = str(exc.orig)
    # PostgreSQL nomme l'index, SQLite liste les colonnes
    return (
        "uq_purchase_orders_one_pending" in msg
        or "UNIQUE constraint failed: purchase_orders.product_id" in msg
    )


def update_order_status(db: Session, order_id: int, status: POStatus) -> PurchaseOrder:
    po = db.get(PurchaseOrder, order_id)
    if po is None:
        raise NotFound(f"Purchase order {order_id} not found")
    po.status = status
    if status == POStatus.received:
        po.received_at = datetime.now(timezone.utc)
    db.flush()
    return po


def list_orders_with_joins(db: Session) -> list[tuple[PurchaseOrder, str, str, str, str]]:
    supplier = aliased(Supplier)
    warehouse = aliased(Warehouse)
    rows = db.execute(
        select(
            PurchaseOrder,
            Product.sku,
            Product.name,
            supplier.name,
            warehouse.name,
        )
        .join(Product, Product.id == PurchaseOrder.product_id)
        .join(supplier, supplier.id == PurchaseOrder.supplier_id)
        .join(warehouse, warehouse.id == PurchaseOrder.warehouse_id)
        .order_by(PurchaseOrder.id.desc())
        .execution_options(populate_existing=True)
    ).all()
    return [tuple(row) for row in rows]
