from pydantic import BaseModel


class WarehouseRead(BaseModel):
    id: int
    name: str
    capacity: int
    available_space: int  # READ ONLY — recalculé, jamais stocké
