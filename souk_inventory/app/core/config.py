from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ReorderPolicy:
    """
    Constantes métier du réapprovisionnement.

    - lead_time_days : délai fixe entre order_date et expected_arrival_date
    - target_multiplier : niveau cible = reorder_threshold * target_multiplier
    - fallback_supplier_id : fournisseur utilisé si le produit n'en a pas
    """

    lead_time_days: int = 3
    target_multiplier: int = 2
    fallback_supplier_id: int = 1

    def __post_init__(self) -> None:
        if self.lead_time_days < 0:
            raise ValueError("lead_time_days must be >= 0")
        # multiplier < 1 donnerait une quantité désirée <= 0
        if self.target_multiplier < 1:
            raise ValueError("target_multiplier must be >= 1")


@dataclass(frozen=True)
class Settings:
    database_url: str
    lead_time_days: int
    target_multiplier: int
    fallback_supplier_id: int
    auto_reorder_on_read: bool
    log_level: str

    def reorder_policy(self) -> ReorderPolicy:
        return ReorderPolicy(
            lead_time_days=self.lead_time_days,
            target_multiplier=self.target_multiplier,
            fallback_supplier_id=self.fallback_supplier_id,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./souk_inventory.db"),
        lead_time_days=_env_int("SOUK_LEAD_TIME_DAYS", 3),
        target_multiplier=_env_int("SOUK_TARGET_MULTIPLIER", 2),
        fallback_supplier_id=_env_int("SOUK_FALLBACK_SUPPLIER_ID", 1),
        auto_reorder_on_read=_env_bool("SOUK_AUTO_REORDER_ON_READ", True),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
