"""
Dépendances FastAPI : registre unique par processus, construit depuis la configuration.
Les tests remplacent get_ledger via app.dependency_overrides.
"""

import logging
from typing import Optional

from attendance_ledger.config import settings
from attendance_ledger.database import SessionLocal
from attendance_ledger.services.ledger_service import AttendanceLedger
from attendance_ledger.services.record_store import InMemoryRecordStore, SqlRecordStore

logger = logging.getLogger(__name__)

_ledger: Optional[AttendanceLedger] = None


def build_ledger(backend: str = "") -> AttendanceLedger:
    """Construit un registre sur le stockage demandé ("memory" ou "sql")."""
    backend = backend or settings.LEDGER_BACKEND
    if backend == "sql":
        return AttendanceLedger(SqlRecordStore(SessionLocal))
    if backend == "memory":
        return AttendanceLedger(InMemoryRecordStore())
    raise ValueError(f"Stockage de registre inconnu : {backend!r} (attendu : memory, sql).")


def get_ledger() -> AttendanceLedger:
    """Dépendance FastAPI: fournit le registre du processus (créé au premier appel)."""
    global _ledger
    if _ledger is None:
        _ledger = build_ledger()
        logger.info(
            "Registre initialisé (stockage=%s, %d enregistrements)",
            settings.LEDGER_BACKEND, _ledger.get_total_records(),
        )
    return _ledger
