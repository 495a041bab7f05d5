from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from souk_inventory.app.api.deps import get_app_settings, get_db, get_policy
from souk_inventory.app.core.config import ReorderPolicy, Settings
from souk_inventory.app.db.models.models_v1 import Product, PurchaseOrder
from souk_inventory.app.schemas.product import ProductRead, StockAdjust
from souk_inventory.services import procurement

router = APIRouter(prefix="/products")


def _product_read(p: Product, supplier_name: str | None = None, warehouse_name: str | None = None) -> ProductRead:
    return ProductRead(
        id=p.id,
        sku=p.sku,
        name=p.name,
        quantity_in_stock=p.quantity_in_stock,
        reorder_threshold=p.reorder_threshold,
        default_supplier_id=p.default_supplier_id,
        warehouse_id=p.warehouse_id,
        supplier_name=supplier_name,
        warehouse_name=warehouse_name,
    )


def reorder_info(po: PurchaseOrder | None) -> dict | None:
    if po is None:
        return None
    return {
        "created": True,
        "order_id": po.id,
        "quantity_ordered": po.quantity_ordered,
        "capacity_issue": po.capacity_issue,
    }


@router.get("", response_model=list[ProductRead])
def list_products(
    db: Session = Depends(get_db),
    policy: ReorderPolicy = Depends(get_policy),
    settings: Settings = Depends(get_app_settings),
):
    """
    Liste des produits.
    Déclenche le réappro paresseux de chaque produit sous son seuil
    sans PO pending (désactivable : SOUK_AUTO_REORDER_ON_READ=false).
    """
    rows = procurement.list_products(db, policy=policy, evaluate=settings.auto_reorder_on_read)
    return [_product_read(*row) for row in rows]


@router.get("/{product_id}", response_model=ProductRead)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    policy: ReorderPolicy = Depends(get_policy),
    settings: Settings = Depends(get_app_settings),
):
    row = procurement.get_product(db, product_id, policy=policy, evaluate=settings.auto_reorder_on_read)
    return _product_read(*row)


@router.post("/{product_id}/adjust-stock")
def adjust_stock(
    product_id: int,
    payload: StockAdjust,
    db: Session = Depends(get_db),
    policy: ReorderPolicy = Depends(get_policy),
):
    result = procurement.adjust_stock(db, product_id, payload.delta, payload.reason, policy=policy)
    return {
        "success": True,
        "product": _product_read(result.product),
        "reorder": reorder_info(result.reorder),
    }
