"""
Moteur de décision de réapprovisionnement.

Fonctions pures : snapshot produit + place disponible -> demande de PO.
Aucun accès base ici ; la création est déléguée à services.procurement.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from souk_inventory.app.core.config import ReorderPolicy
from souk_inventory.app.db.models.models_v1 import Product


@dataclass(frozen=True)
class ProductSnapshot:
    product_id: int
    quantity_in_stock: int
    reorder_threshold: int
    warehouse_id: int
    default_supplier_id: int | None = None

    @classmethod
    def of(cls, product: Product) -> "ProductSnapshot":
        return cls(
            product_id=int(product.id),
            quantity_in_stock=int(product.quantity_in_stock),
            reorder_threshold=int(product.reorder_threshold),
            warehouse_id=int(product.warehouse_id),
            default_supplier_id=product.default_supplier_id,
        )


@dataclass(frozen=True)
class ReorderRequest:
    product_id: int
    supplier_id: int
    warehouse_id: int
    desired_quantity: int
    quantity_ordered: int
    capacity_issue: bool
    order_date: date
    expected_arrival_date: date


def needs_reorder(snapshot: ProductSnapshot) -> bool:
    return snapshot.quantity_in_stock < snapshot.reorder_threshold


def desired_quantity(snapshot: ProductSnapshot, policy: ReorderPolicy) -> int:
    # niveau cible = seuil * multiplier (x2 par défaut)
    target = snapshot.reorder_threshold * policy.target_multiplier
    return target - snapshot.quantity_in_stock


def clip_to_capacity(requested: int, available: int) -> tuple[int, bool]:
    """
    Retourne (quantité, capacity_issue).

    - plus de place (available <= 0) : 0, True
    - demande > place : place, True
    - sinon : demande, False
    """
    if available <= 0:
        return 0, True
    if requested > available:
        return available, True
    return requested, False


def resolve_supplier(default_supplier_id: int | None, policy: ReorderPolicy) -> int:
    return int(default_supplier_id or policy.fallback_supplier_id)


def arrival_dates(policy: ReorderPolicy, today: date | None = None) -> tuple[date, date]:
    order_date = today or date.today()
    return order_date, order_date + timedelta(days=policy.lead_time_days)


def decide_reorder(
    snapshot: ProductSnapshot,
    available: int,
    policy: ReorderPolicy,
    *,
    today: date | None = None,
) -> ReorderRequest | None:
    if not needs_reorder(snapshot):
        return None

    wanted = desired_quantity(snapshot, policy)
    qty, capacity_issue = clip_to_capacity(wanted, available)
    order_date, expected = arrival_dates(policy, today)

    return ReorderRequest(
        product_id=snapshot.product_id,
        supplier_id=resolve_supplier(snapshot.default_supplier_id, policy),
        warehouse_id=snapshot.warehouse_id,
        desired_quantity=wanted,
        quantity_ordered=qty,
        capacity_issue=capacity_issue,
        order_date=order_date,
        expected_arrival_date=expected,
    )
