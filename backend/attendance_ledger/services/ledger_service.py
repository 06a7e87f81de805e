"""
Registre de présences append-only.

Règles de validation d'un ajout (dans cet ordre, sans aucune modification d'état en cas d'échec) :
1. Présent : motif vide (sinon InvalidReason), justificatif = EMPTY_DIGEST (sinon InvalidDocument)
2. Absent  : motif non vide (sinon MissingReason), justificatif libre

Ordre total :
- Les ajouts sont sérialisés par un verrou propre à chaque registre
- record_id = nombre d'enregistrements avant l'ajout → pas de trou, pas de réutilisation
- Les lectures ne prennent jamais le verrou
- Les notifications sont livrées hors du verrou, dans l'ordre des record_id
"""

import logging
import threading
from collections import deque
from typing import Callable, Deque, List, Optional

from attendance_ledger.digests import EMPTY_DIGEST, normalize_digest
from attendance_ledger.exceptions import (
    BATCH_OUT_OF_RANGE,
    InvalidDocument,
    InvalidReason,
    MissingReason,
    OutOfRange,
)
from attendance_ledger.schemas.record import AttendanceLogged, AttendanceRecord, CallContext
from attendance_ledger.services.record_store import InMemoryRecordStore, RecordStore

logger = logging.getLogger(__name__)

Listener = Callable[[AttendanceLogged], None]


def check_attendance_rules(is_present: bool, reason: str, document_hash: str) -> None:
    """Lève l'erreur métier correspondant à la première règle violée."""
    if is_present:
        if reason != "":
            raise InvalidReason()
        if normalize_digest(document_hash) != EMPTY_DIGEST:
            raise InvalidDocument()
    elif reason == "":
        raise MissingReason()


class AttendanceLedger:
    """Séquence append-only d'enregistrements de présence, avec notification après ajout."""

    def __init__(self, store: Optional[RecordStore] = None) -> None:
        self._store = store if store is not None else InMemoryRecordStore()
        self._lock = threading.Lock()
        self._listeners: List[Listener] = []
        # Événements en attente de livraison, dans l'ordre des record_id
        self._pending: Deque[AttendanceLogged] = deque()
        self._dispatching = False

    # --- Notifications ---

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, event: AttendanceLogged) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                # L'enregistrement est déjà commité : on journalise et on continue
                logger.exception(
                    "Abonné %r en échec sur l'enregistrement %d", listener, event.record_id
                )

    def _dispatch(self) -> None:
        """
        Vide la file d'événements hors du verrou d'ajout.
        Un seul thread livre à la fois : un ajout fait depuis un abonné (ou un autre thread)
        pendant la livraison est mis en file et livré ensuite par ce même thread.
        """
        with self._lock:
            if self._dispatching:
                return
            self._dispatching = True
        try:
            while True:
                with self._lock:
                    if not self._pending:
                        self._dispatching = False
                        return
                    event = self._pending.popleft()
                self._notify(event)
        except BaseException:
            with self._lock:
                self._dispatching = False
            raise

    # --- Écriture ---

    def log_attendance(
        self,
        id_hash: str,
        name_hash: str,
        is_present: bool,
        reason: str,
        document_hash: str,
        context: CallContext,
    ) -> int:
        """
        Ajoute un enregistrement et retourne son record_id.

        L'horodatage et l'enregistreur viennent du contexte d'appel, pas du payload.
        L'horodatage vaut au moins celui du dernier enregistrement stocké, relu dans le
        stockage (un autre processus a pu écrire sur la même base).
        La notification AttendanceLogged est délivrée après l'écriture, verrou relâché,
        dans l'ordre des record_id. Un abonné peut donc lui-même appeler log_attendance.
        """
        try:
            check_attendance_rules(is_present, reason, document_hash)
        except (InvalidReason, InvalidDocument, MissingReason) as e:
            logger.debug("Ajout refusé (caller=%s) : %s", context.caller, e)
            raise

        with self._lock:
            record_id = self._store.count()
            previous = self._store.get(record_id - 1) if record_id else None
            timestamp = context.timestamp
            if previous is not None:
                timestamp = max(timestamp, previous.timestamp)
            record = AttendanceRecord(
                record_id=record_id,
                id_hash=id_hash,
                name_hash=name_hash,
                timestamp=timestamp,
                is_present=is_present,
                reason=reason,
                document_hash=document_hash,
                recorder=context.caller,
            )
            self._store.append(record)

            logger.info(
                "Présence enregistrée : #%d (%s) par %s",
                record_id, "présent" if is_present else "absent", context.caller,
            )
            self._pending.append(AttendanceLogged(**record.model_dump()))

        self._dispatch()
        return record_id

    # --- Lectures ---

    def get_total_records(self) -> int:
        return self._store.count()

    def get_record(self, record_id: int) -> AttendanceRecord:
        """Retourne l'enregistrement tel qu'accepté. Lève OutOfRange si record_id >= total."""
        if record_id < 0:
            raise OutOfRange()
        record = self._store.get(record_id)
        if record is None:
            raise OutOfRange()
        return record

    def get_batch(self, start_index: int, count: int) -> List[AttendanceRecord]:
        """
        Retourne les enregistrements [start_index, start_index + n) triés par record_id,
        avec n = min(count, total - start_index) : le lot est tronqué, jamais complété.

        Registre vide : liste vide quel que soit start_index.
        Sinon start_index >= total → OutOfRange("Start index out of bounds").
        """
        if start_index < 0:
            raise OutOfRange(BATCH_OUT_OF_RANGE)
        if count < 0:
            raise ValueError("Batch count must not be negative.")

        total = self._store.count()
        if total == 0:
            return []
        if start_index >= total:
            raise OutOfRange(BATCH_OUT_OF_RANGE)

        size = min(count, total - start_index)
        if size == 0:
            return []
        records = self._store.slice(start_index, size)
        logger.debug("Lot lu : start=%d, demandé=%d, renvoyé=%d", start_index, count, len(records))
        return records


def log_attendance_event(event: AttendanceLogged) -> None:
    """Abonné par défaut de l'API : trace chaque ajout dans les logs applicatifs."""
    logger.info(
        "AttendanceLogged record_id=%d id_hash=%s recorder=%s timestamp=%d",
        event.record_id, event.id_hash, event.recorder, event.timestamp,
    )
