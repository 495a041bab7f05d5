from __future__ import annotations

from typing import Generator

from souk_inventory.app.core.config import ReorderPolicy, Settings, get_settings
from souk_inventory.app.db.session import SessionLocal


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_app_settings() -> Settings:
    return get_settings()


def get_policy() -> ReorderPolicy:
    return get_settings().reorder_policy()
