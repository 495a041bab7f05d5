from datetime import date, datetime

from pydantic import BaseModel, Field, StrictInt

from souk_inventory.app.db.models.core_types import POStatus


class PurchaseOrderRead(BaseModel):
    id: int
    product_id: int
    supplier_id: int
    warehouse_id: int
    quantity_ordered: int
    order_date: date
    expected_arrival_date: date
    status: POStatus
    capacity_issue: bool
    received_at: datetime | None = None

    class Config:
        from_attributes = True


class PurchaseOrderListItem(PurchaseOrderRead):
    product_sku: str
    product_name: str
    supplier_name: str
    warehouse_name: str


class ManualOrderCreate(BaseModel):
    product_id: StrictInt
    quantity_ordered: StrictInt = Field(ge=0)
    supplier_id: int | None = None
    warehouse_id: int | None = None
