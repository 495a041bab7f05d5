from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from souk_inventory.app.core.errors import InvalidState, NotFound
from souk_inventory.app.db.models.models_v1 import Warehouse
from souk_inventory.services import store

logger = logging.getLogger(__name__)


# ---------- STOCK LEDGER ----------
def current_stock(db: Session, product_id: int) -> int:
    qty = store.read_product_stock(db, product_id)
    if qty is None:
        raise NotFound(f"Product {product_id} not found")
    return int(qty)


def apply_delta(db: Session, product_id: int, delta: int) -> int:
    """
    Applique un delta signé au stock (positif = entrée, négatif = sortie).

    Règle métier :
        quantity_in_stock + delta >= 0, sinon InvalidState

    Propriétés :
    - un seul UPDATE conditionnel (pas de lecture puis écriture)
    - rien n'est appliqué si la règle échoue
    """
    if store.increment_product_stock(db, product_id, delta):
        return current_stock(db, product_id)

    # aucune ligne touchée : produit absent, ou stock négatif
    qty = current_stock(db, product_id)
    raise InvalidState(
        f"Resulting stock cannot be negative (stock={qty}, delta={delta})"
    )


def warehouse_total(db: Session, warehouse_id: int) -> int:
    return store.sum_stock_by_warehouse(db, warehouse_id)


# ---------- CAPACITY ORACLE ----------
def available_space(db: Session, warehouse_id: int) -> int:
    """
    capacity - stock total de l'entrepôt.

    Peut être négatif (stock forcé au-dessus de la capacité hors moteur) :
    l'appelant le traite comme 0, jamais comme de la place en plus.
    """
    wh = store.get_warehouse(db, warehouse_id)
    if wh is None:
        raise NotFound(f"Warehouse {warehouse_id} not found")
    return space_left(wh, warehouse_total(db, warehouse_id))


def space_left(warehouse: Warehouse, total_stock: int) -> int:
    return int(warehouse.capacity) - int(total_stock)


def list_warehouses_with_space(db: Session) -> list[tuple[Warehouse, int]]:
    return [
        (wh, space_left(wh, total))
        for wh, total in store.list_warehouses_with_stock(db)
    ]
