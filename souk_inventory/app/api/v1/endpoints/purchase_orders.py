from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from souk_inventory.app.api.deps import get_db, get_policy
from souk_inventory.app.api.v1.endpoints.products import reorder_info
from souk_inventory.app.core.config import ReorderPolicy
from souk_inventory.app.core.errors import NotFound
from souk_inventory.app.schemas.purchase_order import (
    ManualOrderCreate,
    PurchaseOrderListItem,
    PurchaseOrderRead,
)
from souk_inventory.services import procurement, store

router = APIRouter(prefix="/orders")


@router.get("", response_model=list[PurchaseOrderListItem])
def list_orders(db: Session = Depends(get_db)):
    rows = procurement.list_orders(db)
    return [
        PurchaseOrderListItem(
            **PurchaseOrderRead.model_validate(po).model_dump(),
            product_sku=product_sku,
            product_name=product_name,
            supplier_name=supplier_name,
            warehouse_name=warehouse_name,
        )
        for po, product_sku, product_name, supplier_name, warehouse_name in rows
    ]


@router.get("/{order_id}", response_model=PurchaseOrderRead)
def get_order(order_id: int, db: Session = Depends(get_db)):
    po = store.get_order(db, order_id)
    if not po:
        raise NotFound(f"Purchase order {order_id} not found")
    return po


@router.post("")
def create_order(
    payload: ManualOrderCreate,
    db: Session = Depends(get_db),
    policy: ReorderPolicy = Depends(get_policy),
):
    po = procurement.create_manual_order(
        db,
        product_id=payload.product_id,
        quantity_ordered=payload.quantity_ordered,
        supplier_id=payload.supplier_id,
        warehouse_id=payload.warehouse_id,
        policy=policy,
    )
    return {
        "created": True,
        "id": po.id,
        "quantity_ordered": po.quantity_ordered,
        "capacity_issue": po.capacity_issue,
    }


@router.post("/{order_id}/receive")
def receive_order(
    order_id: int,
    db: Session = Depends(get_db),
    policy: ReorderPolicy = Depends(get_policy),
):
    result = procurement.receive_order(db, order_id, policy=policy)
    return {
        "received": True,
        "added_quantity": result.added_quantity,
        "capacity_limited": result.capacity_limited,
        "reorder": reorder_info(result.reorder),
    }
