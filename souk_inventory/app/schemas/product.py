from pydantic import BaseModel, Field, StrictInt


class ProductRead(BaseModel):
    id: int
    sku: str
    name: str
    quantity_in_stock: int
    reorder_threshold: int
    default_supplier_id: int | None = None
    warehouse_id: int

    supplier_name: str | None = None
    warehouse_name: str | None = None

    class Config:
        from_attributes = True


class StockAdjust(BaseModel):
    # négatif = vente / consommation, positif = entrée manuelle
    delta: StrictInt
    reason: str | None = Field(default=None, max_length=255)
