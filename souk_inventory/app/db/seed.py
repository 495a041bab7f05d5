from __future__ import annotations

import logging

from sqlalchemy import select

from souk_inventory.app.core.config import get_settings
from souk_inventory.app.core.logging import configure_logging
from souk_inventory.app.db.base import Base
from souk_inventory.app.db.session import SessionLocal, engine
from souk_inventory.app.db.models.models_v1 import Product, Supplier, Warehouse

logger = logging.getLogger(__name__)

SUPPLIERS = ["Default Supplier", "Atlas Trading"]

WAREHOUSES = [
    ("Casablanca Central", 500),
    ("Marrakech Medina", 150),
]

# sku, name, stock, seuil, fournisseur, entrepôt
PRODUCTS = [
    ("SKU-ARGAN-100", "Argan oil 100ml", 40, 20, "Atlas Trading", "Casablanca Central"),
    ("SKU-TEA-250", "Mint tea 250g", 5, 15, "Default Supplier", "Casablanca Central"),
    ("SKU-SAFFRON-1", "Saffron 1g", 2, 10, None, "Marrakech Medina"),
    ("SKU-TAGINE-M", "Clay tagine M", 120, 10, "Atlas Trading", "Marrakech Medina"),
]


def run_seed():
    # bootstrap local ; en prod le schéma vient d'alembic
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        # 1) Fournisseurs (le premier sert de fallback, id=1)
        suppliers = {}
        for name in SUPPLIERS:
            s = db.scalar(select(Supplier).where(Supplier.name == name))
            if not s:
                s = Supplier(name=name)
                db.add(s)
                db.flush()
            suppliers[name] = s

        # 2) Entrepôts
        warehouses = {}
        for name, capacity in WAREHOUSES:
            wh = db.scalar(select(Warehouse).where(Warehouse.name == name))
            if not wh:
                wh = Warehouse(name=name, capacity=capacity)
                db.add(wh)
                db.flush()
            warehouses[name] = wh

        # 3) Produits
        for sku, name, qty, threshold, supplier, warehouse in PRODUCTS:
            if db.scalar(select(Product).where(Product.sku == sku)):
                continue
            db.add(
                Product(
                    sku=sku,
                    name=name,
                    quantity_in_stock=qty,
                    reorder_threshold=threshold,
                    default_supplier_id=suppliers[supplier].id if supplier else None,
                    warehouse_id=warehouses[warehouse].id,
                )
            )
        db.commit()

        logger.info(
            "SEED OK: %s suppliers, %s warehouses, %s products",
            len(SUPPLIERS),
            len(WAREHOUSES),
            len(PRODUCTS),
        )
    finally:
        db.close()


if __name__ == "__main__":
    configure_logging(get_settings().log_level)
    run_seed()
