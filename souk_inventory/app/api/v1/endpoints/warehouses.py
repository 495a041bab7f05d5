from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from souk_inventory.app.api.deps import get_db
from souk_inventory.app.schemas.warehouse import WarehouseRead
from souk_inventory.services import inventory

router = APIRouter(prefix="/warehouses")


@router.get("", response_model=list[WarehouseRead])
def list_warehouses(db: Session = Depends(get_db)):
    """
    Entrepôts (READ ONLY)
    - available_space = capacity - stock total, recalculé à chaque appel
    - peut être négatif si le stock a été forcé hors moteur
    """
    return [
        WarehouseRead(id=wh.id, name=wh.name, capacity=wh.capacity, available_space=space)
        for wh, space in inventory.list_warehouses_with_space(db)
    ]
