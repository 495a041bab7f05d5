from __future__ import annotations

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from souk_inventory.app.core.config import get_settings


def _serialize_sqlite_writers(engine: Engine) -> None:
    """
    SQLite n'a pas de SELECT ... FOR UPDATE.
    On démarre chaque transaction en BEGIN IMMEDIATE : le verrou d'écriture
    est pris dès le début, les transactions concurrentes attendent (timeout).
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # on laisse SQLAlchemy piloter BEGIN, pas pysqlite
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def make_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        _serialize_sqlite_writers(engine)
        return engine

    return create_engine(url, pool_pre_ping=True)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


engine = make_engine(get_settings().database_url)
SessionLocal = make_session_factory(engine)
