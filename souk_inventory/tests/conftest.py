import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from souk_inventory.app.api.deps import get_db, get_policy
from souk_inventory.app.core.config import ReorderPolicy
from souk_inventory.app.db.base import Base
from souk_inventory.app.db.models.models_v1 import Product, Supplier, Warehouse
from souk_inventory.app.db.session import make_engine, make_session_factory


@pytest.fixture(scope="function")
def engine(tmp_path):
    """
    Base SQLite fichier isolée par test.

    Un fichier (pas :memory:) pour que les threads des tests de
    concurrence partagent la même base, chacun avec sa connexion.
    """
    eng = make_engine(f"sqlite:///{tmp_path / 'souk_test.db'}")
    Base.metadata.create_all(bind=eng)
    try:
        yield eng
    finally:
        eng.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db_session(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def policy() -> ReorderPolicy:
    return ReorderPolicy(lead_time_days=3, target_multiplier=2, fallback_supplier_id=1)


class Builder:
    """
    Données de test.

    Chaque méthode commit et retourne un id capturé AVANT le commit :
    on ne relit jamais un objet expiré, donc aucune transaction ne reste
    ouverte (SQLite + BEGIN IMMEDIATE bloquerait les autres connexions).
    """

    def __init__(self, db: Session):
        self.db = db
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    def supplier(self, name: str | None = None) -> int:
        s = Supplier(name=name or f"TEST-SUP-{self._next()}")
        self.db.add(s)
        self.db.flush()
        sid = int(s.id)
        self.db.commit()
        return sid

    def warehouse(self, capacity: int = 100, name: str | None = None) -> int:
        wh = Warehouse(name=name or f"TEST-WH-{self._next()}", capacity=capacity)
        self.db.add(wh)
        self.db.flush()
        wid = int(wh.id)
        self.db.commit()
        return wid

    def product(
        self,
        warehouse_id: int,
        *,
        qty: int,
        threshold: int,
        supplier_id: int | None = None,
        sku: str | None = None,
    ) -> int:
        n = self._next()
        p = Product(
            sku=sku or f"TEST-SKU-{n}",
            name=f"TEST-PROD-{n}",
            quantity_in_stock=qty,
            reorder_threshold=threshold,
            default_supplier_id=supplier_id,
            warehouse_id=warehouse_id,
        )
        self.db.add(p)
        self.db.flush()
        pid = int(p.id)
        self.db.commit()
        return pid


@pytest.fixture
def build(db_session) -> Builder:
    b = Builder(db_session)
    # fournisseur fallback (id=1)
    b.supplier(name="Default Supplier")
    return b


@pytest.fixture
def client(session_factory, policy):
    from souk_inventory.app.main import create_app

    app = create_app()

    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_policy] = lambda: policy

    with TestClient(app) as c:
        yield c
