"""
Stockages de la séquence append-only du registre.

Deux implémentations interchangeables :
- InMemoryRecordStore : liste Python possédée par le registre (défaut, tests)
- SqlRecordStore      : table attendance_records via SQLAlchemy (persistance)

Les stockages ne valident rien : le registre (AttendanceLedger) est l'unique écrivain
et n'ajoute qu'en fin de séquence, sous son verrou.
"""

import logging
from typing import List, Optional, Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from attendance_ledger.exceptions import AppendConflict
from attendance_ledger.models.attendance_record import AttendanceRecordRow
from attendance_ledger.schemas.record import AttendanceRecord

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    def count(self) -> int:
        ...

    def append(self, record: AttendanceRecord) -> None:
        ...

    def get(self, record_id: int) -> Optional[AttendanceRecord]:
        ...

    def slice(self, start: int, limit: int) -> List[AttendanceRecord]:
        ...


class InMemoryRecordStore:
    """Séquence en mémoire. Chaque instance est indépendante (plusieurs registres en test)."""

    def __init__(self) -> None:
        self._records: List[AttendanceRecord] = []

    def count(self) -> int:
        return len(self._records)

    def append(self, record: AttendanceRecord) -> None:
        self._records.append(record)

    def get(self, record_id: int) -> Optional[AttendanceRecord]:
        if 0 <= record_id < len(self._records):
            return self._records[record_id]
        return None

    def slice(self, start: int, limit: int) -> List[AttendanceRecord]:
        # Longueur lue une seule fois : instantané cohérent même pendant un ajout
        end = min(start + limit, len(self._records))
        return self._records[start:end]


class SqlRecordStore:
    """
    Séquence persistée dans la table attendance_records.

    Une session courte par opération. Un ajout = une transaction commitée ;
    une collision de clé primaire (autre processus sur la même base) est annulée
    et relevée en AppendConflict.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def count(self) -> int:
        db: Session = self._session_factory()
        try:
            return db.execute(
                select(func.count()).select_from(AttendanceRecordRow)
            ).scalar() or 0
        finally:
            db.close()

    def append(self, record: AttendanceRecord) -> None:
        db: Session = self._session_factory()
        try:
            db.add(AttendanceRecordRow(**record.model_dump()))
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning("record_id %d déjà présent en base : ajout annulé", record.record_id)
            raise AppendConflict()
        except Exception:
            db.rollback()
            logger.error("Échec de l'écriture de l'enregistrement %d", record.record_id)
            raise
        finally:
            db.close()

    def get(self, record_id: int) -> Optional[AttendanceRecord]:
        db: Session = self._session_factory()
        try:
            row = db.get(AttendanceRecordRow, record_id)
            if row is None:
                return None
            return AttendanceRecord.model_validate(row)
        finally:
            db.close()

    def slice(self, start: int, limit: int) -> List[AttendanceRecord]:
        db: Session = self._session_factory()
        try:
            rows = db.execute(
                select(AttendanceRecordRow)
                .where(AttendanceRecordRow.record_id >= start)
                .order_by(AttendanceRecordRow.record_id.asc())
                .limit(limit)
            ).scalars().all()
            return [AttendanceRecord.model_validate(r) for r in rows]
        finally:
            db.close()
