from fastapi import APIRouter

from souk_inventory.app.api.v1.endpoints.products import router as products_router
from souk_inventory.app.api.v1.endpoints.purchase_orders import router as purchase_orders_router
from souk_inventory.app.api.v1.endpoints.warehouses import router as warehouses_router

router = APIRouter()
router.include_router(products_router, tags=["products"])
router.include_router(purchase_orders_router, tags=["purchase_orders"])
router.include_router(warehouses_router, tags=["warehouses"])
